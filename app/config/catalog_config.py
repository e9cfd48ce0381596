"""
Catalog Configuration
Fixed vocabulary of the resource catalog: grades, resource categories,
file types offered by the search filters, and the record store collections.
"""

# Record store collections
USERS = "users"
SUBJECTS = "subjects"
RESOURCES = "resources"
PROFILES = "profiles"

GRADES = [9, 10, 11, 12]

# Resource categories; "pyqs" are previous year question papers
CATEGORIES = {
    "notes": "Notes",
    "pyqs": "PYQs",
    "projects": "Projects",
}

DEFAULT_CATEGORY = "notes"

# Subjects without a subject_type are grouped here
OTHER_SUBJECT_CATEGORY = "OTHER"

FILE_TYPES = ["pdf", "doc", "docx", "ppt", "pptx"]

ROLES = ["admin", "student"]
DEFAULT_ROLE = "student"

# Client-side search input debounce, published with the search options
SEARCH_DEBOUNCE_MS = 300

RECENT_UPLOADS_LIMIT = 5

# Cache-Control max-age for uploaded objects
UPLOAD_CACHE_SECONDS = 3600


def is_valid_grade(grade) -> bool:
    return grade in GRADES


def is_valid_category(category) -> bool:
    return category in CATEGORIES


def get_search_options():
    """
    Returns the filter vocabulary used by the search panel
    Format: {
        "grades": [9, 10, 11, 12],
        "categories": [{"value": "notes", "label": "Notes"}, ...],
        "file_types": ["pdf", ...],
        "debounce_ms": 300
    }
    """
    return {
        "grades": list(GRADES),
        "categories": [{"value": value, "label": label} for value, label in CATEGORIES.items()],
        "file_types": list(FILE_TYPES),
        "debounce_ms": SEARCH_DEBOUNCE_MS,
    }
