from typing import Any, Dict, List, Tuple

EMPLOYMENT_TYPES = {"full-time", "part-time", "contract", "internship"}

TITLE_MAX = 200
DESCRIPTION_MIN = 10
DESCRIPTION_MAX = 5000
SKILLS_MAX = 20
SKILL_LENGTH_MAX = 50


def _is_non_empty_str(v: Any) -> bool:
    return isinstance(v, str) and v.strip() != ""


def _has_id(data: Dict[str, Any]) -> bool:
    v = data.get("id")
    if isinstance(v, str):
        return v.strip() != ""
    return v is not None and not isinstance(v, bool)


def _is_str_list(v: Any) -> bool:
    return isinstance(v, (list, tuple)) and all(isinstance(x, str) for x in v)


def validate_candidate(data: Dict[str, Any]) -> List[str]:
    """
    Returns a list of validation error messages. Empty list means valid.
    A missing or blank cv_text is valid; such candidates are skipped, not rejected.
    """
    errors: List[str] = []
    if not _has_id(data):
        errors.append("Missing required field: id")
    cv_text = data.get("cv_text")
    if cv_text is not None and not isinstance(cv_text, str):
        errors.append("Field 'cv_text' must be a string if provided")
    return errors


def validate_job(data: Dict[str, Any]) -> List[str]:
    """Minimal checks a job needs before it can be scored."""
    errors: List[str] = []

    if not _has_id(data):
        errors.append("Missing required field: id")
    if "title" not in data:
        errors.append("Missing required field: title")
    elif not _is_non_empty_str(data["title"]):
        errors.append("Field 'title' must be a non-empty string")

    description = data.get("description")
    if description is not None and not isinstance(description, str):
        errors.append("Field 'description' must be a string if provided")

    if "required_skills" not in data:
        errors.append("Missing required field: required_skills")
    elif data["required_skills"] is not None and not _is_str_list(data["required_skills"]):
        errors.append("Field 'required_skills' must be a list of strings")

    if "is_active" in data and not isinstance(data["is_active"], bool):
        errors.append("Field 'is_active' must be a boolean if provided")

    return errors


def validate_synonym(data: Dict[str, Any]) -> List[str]:
    errors: List[str] = []
    if not _is_non_empty_str(data.get("term")):
        errors.append("Field 'term' must be a non-empty string")
    if not _is_str_list(data.get("synonyms")):
        errors.append("Field 'synonyms' must be a list of strings")
    return errors


def validate_job_strict(data: Dict[str, Any]) -> Tuple[bool, List[str]]:
    """
    Posting-form rules applied when jobs are imported.

    Returns:
        Tuple of (is_valid, errors)
    """
    errors = validate_job(data)

    title = data.get("title")
    if isinstance(title, str) and len(title) > TITLE_MAX:
        errors.append(f"Field 'title' length must be at most {TITLE_MAX} characters")

    description = data.get("description") or ""
    if isinstance(description, str) and not DESCRIPTION_MIN <= len(description) <= DESCRIPTION_MAX:
        errors.append(
            f"Field 'description' length must be between {DESCRIPTION_MIN} and {DESCRIPTION_MAX} characters"
        )

    skills = data.get("required_skills")
    if _is_str_list(skills):
        skills = [s for s in skills if s.strip()]
        if not skills:
            errors.append("At least one required skill is needed")
        elif len(skills) > SKILLS_MAX:
            errors.append(f"At most {SKILLS_MAX} required skills allowed")
        if any(len(s.strip()) > SKILL_LENGTH_MAX for s in skills):
            errors.append(f"Each skill length must be at most {SKILL_LENGTH_MAX} characters")

    employment_type = data.get("employment_type")
    if employment_type is not None and employment_type not in EMPLOYMENT_TYPES:
        errors.append(
            f"Field 'employment_type' must be one of: {', '.join(sorted(EMPLOYMENT_TYPES))}"
        )

    return (len(errors) == 0, errors)
