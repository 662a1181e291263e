# jobmatch/nlp/extractors.py
import logging
import re
from dataclasses import dataclass, field
from datetime import date

from jobmatch.nlp.dates import years_from_date_ranges
from jobmatch.nlp.skills import extract_education, extract_skills

log = logging.getLogger(__name__)

MAX_MENTION_YEARS = 50.0

_NUM = r"(?<![\d.])(\d{1,2}(?:\.\d+)?)"
_YRS = r"(?:years?|yrs?)"

_EXPLICIT_PATS = (
    re.compile(rf"{_NUM}\+?\s*{_YRS}(?:\s+of)?\s+(?:professional\s+|relevant\s+|work\s+|industry\s+)?experience", re.I),
    re.compile(rf"experience[:\s]+{_NUM}\+?\s*{_YRS}", re.I),
)
_YEARS_MONTHS_PAT = re.compile(rf"(\d{{1,2}})\s*{_YRS}\s*(?:and\s+|,\s*)?(\d{{1,2}})\s*(?:months?|mos?)\b", re.I)
_GENERIC_PAT = re.compile(rf"{_NUM}\+?\s*{_YRS}\b", re.I)

# a bare "N years" only counts with one of these nearby ("warranty: 2 years" does not)
_CONTEXT_WORDS = re.compile(
    r"\b(?:experience[d]?|worked|working|professional|career|industry|background|expertise)\b",
    re.I,
)
_CONTEXT_WINDOW = 40


@dataclass
class ResumeAnalysis:
    skills: list[str] = field(default_factory=list)
    experience_years: float = 0.0
    experience_source: str | None = None  # 'mention' | 'date_ranges' | None
    education: list[str] = field(default_factory=list)


def _plausible(v: float) -> bool:
    return 0 < v <= MAX_MENTION_YEARS


def years_from_mentions(text: str) -> float:
    """Largest plausible explicit experience mention, 0.0 when there is none."""
    if not text:
        return 0.0
    found: list[float] = []

    for pat in _EXPLICIT_PATS:
        for m in pat.finditer(text):
            found.append(float(m.group(1)))

    for m in _YEARS_MONTHS_PAT.finditer(text):
        months = int(m.group(2))
        if months < 12:
            found.append(int(m.group(1)) + months / 12.0)

    for m in _GENERIC_PAT.finditer(text):
        lo = max(0, m.start() - _CONTEXT_WINDOW)
        hi = min(len(text), m.end() + _CONTEXT_WINDOW)
        if _CONTEXT_WORDS.search(text[lo:hi]):
            found.append(float(m.group(1)))

    valid = [v for v in found if _plausible(v)]
    return max(valid) if valid else 0.0


def analyze_resume_text(text: str, today: date | None = None) -> ResumeAnalysis:
    """
    Skills, education keywords and total experience for a resume.

    Experience is the larger of the mention-based and the date-range-based
    estimate. The two are not cross-checked, so one misfiring heuristic
    (a stray "20 years") can overstate the result; the winner is kept in
    `experience_source`.
    """
    text = text or ""
    mention = years_from_mentions(text)
    ranges = years_from_date_ranges(text, today)

    if mention <= 0 and ranges <= 0:
        years, source = 0.0, None
    elif mention >= ranges:
        years, source = mention, "mention"
    else:
        years, source = ranges, "date_ranges"

    if mention > 0 and ranges > 0:
        log.debug("experience heuristics disagree: mention=%.2f date_ranges=%.2f, using %s",
                  mention, ranges, source)

    return ResumeAnalysis(
        skills=extract_skills(text),
        experience_years=round(years, 1),
        experience_source=source,
        education=extract_education(text),
    )
