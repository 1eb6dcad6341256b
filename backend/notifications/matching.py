"""
Relevance matching between council subjects and citizen preferences.

Each (subject, user) pair is run through an ordered list of rules; the first
rule that fires decides the match reason, so a user gets at most one reason
per subject. Results are folded into a fresh mapping once all pairs are
evaluated, which lets the proximity lookups run on a worker pool.
"""

from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from pydantic import ValidationError

from config.notification_settings import (
    PROXIMITY_DISTANCE_METERS,
    PROXIMITY_MAX_WORKERS,
)
from models.notification import NotificationImpact, SubjectMatch
from models.subject import Subject, SubjectImportance, UserPreference
from models.types import MatchReason, SubjectID, UserID
from notifications.error_logger import log_notification_error
from notifications.proximity import ProximityCheck, calculate_proximity_matches

MatchRule = Callable[
    [Subject, SubjectImportance, UserPreference, ProximityCheck], Optional[MatchReason]
]

# (user_id, subject_id, reason or None)
PairDecision = Tuple[UserID, SubjectID, Optional[MatchReason]]


def _high_importance_rule(
    subject: Subject,
    importance: SubjectImportance,
    user: UserPreference,
    proximity_check: ProximityCheck,
) -> Optional[MatchReason]:
    """High topic importance notifies every user."""
    if importance.topic_importance == "high":
        return "generalInterest"
    return None


def _topic_rule(
    subject: Subject,
    importance: SubjectImportance,
    user: UserPreference,
    proximity_check: ProximityCheck,
) -> Optional[MatchReason]:
    """Normal topic importance notifies users interested in the subject's topic."""
    if importance.topic_importance != "normal" or not subject.topic_id:
        return None
    if subject.topic_id in user.interest_ids:
        return "topic"
    return None


def _proximity_rule(
    subject: Subject,
    importance: SubjectImportance,
    user: UserPreference,
    proximity_check: ProximityCheck,
) -> Optional[MatchReason]:
    """Near/wide proximity notifies users with a location within the threshold."""
    if importance.proximity_importance == "none":
        return None
    if not subject.location_id or not user.location_ids:
        return None

    distance_meters = PROXIMITY_DISTANCE_METERS[importance.proximity_importance]
    try:
        is_nearby = proximity_check(
            user.location_ids, subject.location_id, distance_meters
        )
    except Exception as e:
        error_file = log_notification_error(
            error_type="matching",
            error_message=str(e),
            context={
                "subject_id": subject.id,
                "subject_location_id": subject.location_id,
                "user_id": user.user_id,
                "distance_meters": distance_meters,
            },
        )
        print(
            f"  ⚠️  Proximity check failed for subject {subject.id}, user {user.user_id}. "
            f"Details logged to: {error_file}"
        )
        return None

    return "proximity" if is_nearby else None


# Highest precedence first
MATCH_RULES: Tuple[MatchRule, ...] = (
    _high_importance_rule,
    _topic_rule,
    _proximity_rule,
)


def evaluate_match_rules(
    subject: Subject,
    importance: SubjectImportance,
    user: UserPreference,
    proximity_check: Optional[ProximityCheck] = None,
) -> Optional[MatchReason]:
    """
    Decide why (if at all) a user should be notified about a subject.

    Rules are evaluated in precedence order and the first one that fires wins;
    later rules are never consulted for the pair.

    Returns:
        The match reason, or None if no rule fired
    """
    check = proximity_check or calculate_proximity_matches
    for rule in MATCH_RULES:
        reason = rule(subject, importance, user, check)
        if reason is not None:
            return reason
    return None


def parse_importance_overrides(
    raw_overrides: Optional[Dict[str, Any]],
) -> Dict[SubjectID, SubjectImportance]:
    """
    Convert request-style importance overrides into models.

    Args:
        raw_overrides: Mapping of subject ID to a dict with optional
            'topicImportance' and 'proximityImportance' keys

    Returns:
        Mapping of subject ID to SubjectImportance, missing fields defaulted;
        entries with an unknown tier are reported and left out
    """
    if not raw_overrides or not isinstance(raw_overrides, dict):
        return {}

    overrides: Dict[SubjectID, SubjectImportance] = {}
    for subject_id, importance in raw_overrides.items():
        if not isinstance(importance, dict):
            continue
        try:
            parsed = SubjectImportance(
                topic_importance=importance.get("topicImportance") or "doNotNotify",
                proximity_importance=importance.get("proximityImportance") or "none",
            )
        except ValidationError:
            print(
                f"  ⚠️  Invalid importance for subject {subject_id}: "
                f"{importance.get('topicImportance')!r}/"
                f"{importance.get('proximityImportance')!r}, skipping"
            )
            continue
        overrides[SubjectID(str(subject_id).strip())] = parsed
    return overrides


def merge_user_preferences(users: Iterable[UserPreference]) -> List[UserPreference]:
    """
    Collapse duplicate preference records into one per user.

    Locations and interests of duplicates are unioned, keeping first-seen order.
    """
    merged: Dict[UserID, UserPreference] = {}
    for user in users:
        existing = merged.get(user.user_id)
        if existing is None:
            merged[user.user_id] = user.model_copy()
            continue
        merged[user.user_id] = UserPreference(
            user_id=user.user_id,
            location_ids=list(dict.fromkeys([*existing.location_ids, *user.location_ids])),
            interest_ids=list(dict.fromkeys([*existing.interest_ids, *user.interest_ids])),
        )
    return list(merged.values())


def _active_subjects(
    subjects: Sequence[Subject],
    importances: Dict[SubjectID, SubjectImportance],
) -> List[Tuple[Subject, SubjectImportance]]:
    """Pair subjects with their resolved importance, dropping fully disabled ones."""
    active = []
    for subject in subjects:
        importance = importances.get(subject.id) or SubjectImportance()
        if importance.is_disabled:
            continue
        active.append((subject, importance))
    return active


def _evaluate_pairs(
    pairs: List[Tuple[Subject, SubjectImportance, UserPreference]],
    proximity_check: ProximityCheck,
    max_workers: int,
) -> List[PairDecision]:
    """Run the rule list over every pair, fanning out to a pool when allowed."""

    def decide(
        pair: Tuple[Subject, SubjectImportance, UserPreference],
    ) -> PairDecision:
        subject, importance, user = pair
        reason = evaluate_match_rules(subject, importance, user, proximity_check)
        return user.user_id, subject.id, reason

    if max_workers <= 1 or len(pairs) <= 1:
        return [decide(pair) for pair in pairs]

    decisions: List[PairDecision] = []
    with ThreadPoolExecutor(max_workers=min(max_workers, len(pairs))) as executor:
        futures = [executor.submit(decide, pair) for pair in pairs]
        for future in as_completed(futures):
            decisions.append(future.result())
    return decisions


def match_users_to_subjects(
    subjects: Sequence[Subject],
    importances: Optional[Dict[SubjectID, SubjectImportance]],
    users: Iterable[UserPreference],
    proximity_check: Optional[ProximityCheck] = None,
    max_workers: int = PROXIMITY_MAX_WORKERS,
) -> Dict[UserID, frozenset[SubjectMatch]]:
    """
    Match users to subjects based on importance levels and user preferences.

    Args:
        subjects: Subjects of one meeting
        importances: Per-subject importance; absent subjects default to
            doNotNotify/none and are never notified
        users: Preference records (duplicates per user are merged)
        proximity_check: Distance oracle, defaults to the Supabase RPC
        max_workers: Upper bound on concurrent rule evaluations

    Returns:
        Mapping of every input user ID to the (possibly empty) set of matches
    """
    check = proximity_check or calculate_proximity_matches
    merged_users = merge_user_preferences(users)

    pairs = [
        (subject, importance, user)
        for subject, importance in _active_subjects(subjects, importances or {})
        for user in merged_users
    ]
    decisions = _evaluate_pairs(pairs, check, max_workers)

    found: Dict[UserID, set[SubjectMatch]] = {
        user.user_id: set() for user in merged_users
    }
    for user_id, subject_id, reason in decisions:
        if reason is not None:
            found[user_id].add(SubjectMatch(subject_id=subject_id, reason=reason))

    return {user_id: frozenset(matches) for user_id, matches in found.items()}


def calculate_notification_impact(
    subjects: Sequence[Subject],
    importances: Optional[Dict[SubjectID, SubjectImportance]],
    users: Iterable[UserPreference],
    proximity_check: Optional[ProximityCheck] = None,
    max_workers: int = PROXIMITY_MAX_WORKERS,
) -> NotificationImpact:
    """
    Calculate how many users a notification run would reach.

    Has no side effects, so admins can preview repeatedly before creating
    notifications.

    Returns:
        NotificationImpact with the unique user count and per-subject counts
    """
    user_matches = match_users_to_subjects(
        subjects, importances, users, proximity_check, max_workers
    )

    notified_users = set()
    subject_impact: Dict[SubjectID, int] = {}
    for user_id, matches in user_matches.items():
        if not matches:
            continue
        notified_users.add(user_id)
        for match in matches:
            subject_impact[match.subject_id] = subject_impact.get(match.subject_id, 0) + 1

    return NotificationImpact(
        total_users=len(notified_users), subject_impact=subject_impact
    )
