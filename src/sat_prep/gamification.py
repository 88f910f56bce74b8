"""Experience points, levels and achievement tasks."""
import math
from dataclasses import dataclass
from typing import Callable

from sat_prep.models import TEST_FULL, TEST_QUICK, FlashcardResult, TestResult, UserProfile

LEVEL_GROWTH = 1.2


@dataclass(frozen=True)
class Task:
    id: str
    description: str
    xp: int
    is_completed: Callable[[UserProfile, list, list], bool]


def _full_sims(history: list[TestResult]) -> list[TestResult]:
    return [t for t in history if t.test_type == TEST_FULL]


TASKS = [
    Task("first_sim", "Complete your first Full Simulation test", 250,
         lambda p, th, fh: len(_full_sims(th)) > 0),
    Task("score_1200", "Score 1200 or higher on a Full Simulation", 500,
         lambda p, th, fh: any(t.total_score >= 1200 for t in _full_sims(th))),
    Task("score_1400", "Score 1400 or higher on a Full Simulation", 1000,
         lambda p, th, fh: any(t.total_score >= 1400 for t in _full_sims(th))),
    Task("five_flash_decks", "Complete 5 flashcard decks", 150,
         lambda p, th, fh: len(fh) >= 5),
    Task("ten_quick_tests", "Complete 10 Quick Tests", 300,
         lambda p, th, fh: sum(1 for t in th if t.test_type == TEST_QUICK) >= 10),
    Task("perfect_flash_deck", "Get a perfect score on a flashcard deck", 200,
         lambda p, th, fh: any(f.score == f.total for f in fh)),
]


def add_xp(profile: UserProfile, earned: int) -> tuple[UserProfile, int]:
    """Apply an XP award, rolling over into as many level-ups as it pays for.

    Returns the updated profile and the number of levels gained.
    """
    if profile.xp_to_next_level <= 0:
        raise ValueError("xp_to_next_level must be positive")
    xp = profile.xp + int(earned)
    level = profile.level
    to_next = profile.xp_to_next_level
    gained = 0
    while xp >= to_next:
        xp -= to_next
        level += 1
        gained += 1
        to_next = math.floor(to_next * LEVEL_GROWTH)
    return profile.update(xp=xp, level=level, xp_to_next_level=to_next), gained


def xp_for_test(result: TestResult) -> int:
    if result.test_type == TEST_FULL:
        return result.total_score // 10
    return result.total_score


def xp_for_deck(result: FlashcardResult) -> int:
    return result.score * 10


def evaluate_tasks(
    profile: UserProfile,
    test_history: list[TestResult],
    flashcard_history: list[FlashcardResult],
) -> tuple[UserProfile, list[Task]]:
    """Mark newly satisfied tasks complete and pay their bonus in one step."""
    done = set(profile.completed_tasks)
    newly = [
        t for t in TASKS
        if t.id not in done and t.is_completed(profile, test_history, flashcard_history)
    ]
    if not newly:
        return profile, []
    bonus = sum(t.xp for t in newly)
    updated, _ = add_xp(profile, bonus)
    updated = updated.update(completed_tasks=profile.completed_tasks + tuple(t.id for t in newly))
    return updated, newly
