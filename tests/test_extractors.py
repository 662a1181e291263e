from datetime import date

from jobmatch.nlp.extractors import analyze_resume_text, years_from_mentions
from jobmatch.nlp.skills import extract_education, extract_skills

TODAY = date(2024, 6, 15)


def test_explicit_mention_without_dates():
    a = analyze_resume_text("Backend engineer with 5+ years of experience in Python.", TODAY)
    assert a.experience_years == 5.0
    assert a.experience_source == "mention"


def test_experience_colon_form():
    assert years_from_mentions("Experience: 7 years") == 7.0


def test_years_and_months():
    assert round(years_from_mentions("3 years 6 months of experience"), 2) == 3.5


def test_generic_years_needs_context():
    assert years_from_mentions("Warranty: 2 years on all parts") == 0.0
    assert years_from_mentions("Worked 4 years as a data analyst") == 4.0


def test_implausible_mentions_ignored():
    assert years_from_mentions("75 years of experience") == 0.0


def test_larger_heuristic_wins():
    text = "2 years of experience\nAcme, Jan 2018 - Dec 2021"
    a = analyze_resume_text(text, TODAY)
    assert a.experience_years == 4.0
    assert a.experience_source == "date_ranges"


def test_no_signal_is_zero():
    a = analyze_resume_text("Hello world", TODAY)
    assert a.experience_years == 0.0
    assert a.experience_source is None


def test_skills_follow_vocabulary_order_and_dedupe():
    text = "Skills: Python, React and Node.js; javascript, PYTHON"
    assert extract_skills(text) == ["JavaScript", "Python", "React", "Node.js"]


def test_skill_boundaries():
    assert "Java" not in extract_skills("JavaScript only")
    assert extract_skills("C++ and C# developer") == ["C#", "C++"]


def test_education_keywords():
    assert extract_education("B.S. in Computer Science, MBA") == ["B.S.", "MBA"]
