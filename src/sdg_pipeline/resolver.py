"""Goal and year resolution for staged files.

The reporting year comes from the file name. The SDG goal comes from the
file name when it follows ``sdg_<number>_<slug>``, otherwise from the
first header that mentions a known phrase.

Phrase matching is case-insensitive on both sides. Acronym phrases such
as ``(GPI)``, ``(LFPR)``, ``(PWS)``, ``LPG`` and ``PNG`` therefore match
headers that spell them in capitals, as the exports do.
"""

import os
import re
from datetime import date
from typing import Iterable, Optional, Tuple

from sdg_pipeline.exceptions import FileReadError
from sdg_pipeline.formats import DEFAULT_DELIMITER, read_headers
from sdg_pipeline.logging_config import create_logger
from sdg_pipeline.models import UNKNOWN_GOAL_NAME

logger = create_logger(__name__)

Goal = Tuple[Optional[int], str]

YEAR_PATTERN = re.compile(r"(\d{4}-\d{2})")
GOAL_FILENAME_PATTERN = re.compile(r"sdg_(\d+)_([\w-]+)", re.IGNORECASE | re.ASCII)

# (phrase, goal, name), tested in this order; earlier phrases win
GOAL_PHRASES = (
    ("kachha houses", 1, "No Poverty"),
    ("poverty index", 1, "No Poverty"),
    ("poverty line", 1, "No Poverty"),
    ("underweight", 2, "Zero Hunger"),
    ("stunted", 2, "Zero Hunger"),
    ("rice", 2, "Zero Hunger"),
    ("maternal mortality", 3, "Good Health and Well-being"),
    ("(gpi)", 4, "Quality Education"),
    ("dropout", 4, "Quality Education"),
    ("literate", 4, "Quality Education"),
    ("(lfpr)", 5, "Gender Equality"),
    ("sex ratio", 5, "Gender Equality"),
    ("(pws)", 6, "Clean Water and Sanitation"),
    ("over-exploited", 6, "Clean Water and Sanitation"),
    ("electrified", 7, "Affordable and Clean Energy"),
    ("lpg", 7, "Affordable and Clean Energy"),
    ("png", 7, "Affordable and Clean Energy"),
)

UNKNOWN_GOAL: Goal = (None, UNKNOWN_GOAL_NAME)


def resolve_year(file_name: str, today: Optional[date] = None) -> int:
    """Return the reporting year encoded as ``YYYY-YY`` in a file name.

    Only the first four digits count, so ``2023-24`` is 2023. Names
    without the pattern fall back to the current calendar year.
    """
    match = YEAR_PATTERN.search(os.path.basename(file_name))
    if match:
        return int(match.group(1)[:4])
    return (today or date.today()).year


def humanize_slug(slug: str) -> str:
    """``good-health`` / ``good_health`` -> ``Good Health``."""
    words = re.sub(r"[_-]", " ", slug)
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), words)


def goal_from_filename(file_name: str) -> Optional[Goal]:
    match = GOAL_FILENAME_PATTERN.search(os.path.basename(file_name))
    if not match:
        return None

    goal = int(match.group(1))
    if not goal:
        return None
    return goal, humanize_slug(match.group(2))


def goal_from_headers(headers: Iterable[str]) -> Goal:
    """Match headers against ``GOAL_PHRASES``; first header, first phrase wins."""
    for header in headers:
        lowered = header.lower()
        for phrase, goal, name in GOAL_PHRASES:
            if phrase in lowered:
                return goal, name
    return UNKNOWN_GOAL


def resolve_goal(file_path: str, delimiter: str = DEFAULT_DELIMITER) -> Goal:
    """Resolve the SDG goal of a file, by name first and content second."""
    from_name = goal_from_filename(file_path)
    if from_name:
        return from_name

    logger.info("Checking headers to detect SDG goal...")
    try:
        headers = read_headers(file_path, delimiter)
    except FileReadError as e:
        logger.error(f"SDG goal detection failed: {e}")
        return UNKNOWN_GOAL

    if not headers:
        logger.warning(f"No headers detected for file: {file_path}")
        return UNKNOWN_GOAL

    goal, name = goal_from_headers(headers)
    if goal is None:
        logger.warning(f"Could not determine SDG goal for file: {file_path}")
    else:
        logger.info(f"Detected SDG Goal: {name} (SDG {goal})")
    return goal, name
