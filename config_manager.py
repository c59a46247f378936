# config_manager.py
import json
import logging
from typing import Dict

from config import BASE_CATEGORIES

logger = logging.getLogger(__name__)

# --- Constants ---
# Persisted state keys (one record per key in the key-value store)
FOCUS_MODE_KEY = "focusModeActive"
CURRENT_GOAL_KEY = "currentGoal"
SCORE_HISTORY_KEY = "scoreHistory"
WORKSPACES_KEY = "workspaces"
USER_CATEGORIES_KEY = "userCategories"
RULES_KEY = "rules"
REVIEW_QUEUE_KEY = "reviewQueue"
TAB_METADATA_KEY = "tabMetadata"
SESSION_START_KEY = "sessionStartTime"

# Domain rules have the highest priority for categorization
DEFAULT_RULES = {
    "github.com": "Work",
    "notion.so": "Work",
    "jira.atlassian.net": "Work",
    "trello.com": "Work",
    "stackoverflow.com": "Learning",
    "developer.mozilla.org": "Learning",
    "youtube.com": "Entertainment",
    "netflix.com": "Entertainment",
    "facebook.com": "Social",
    "twitter.com": "Social",
    "instagram.com": "Social",
    "reddit.com": "Social",
}


def default_state(now_ms: int) -> Dict:
    """Fresh defaults for every persisted key. Applied only where a key is missing."""
    return {
        FOCUS_MODE_KEY: False,
        CURRENT_GOAL_KEY: None,
        SCORE_HISTORY_KEY: [],
        WORKSPACES_KEY: {},
        USER_CATEGORIES_KEY: list(BASE_CATEGORIES),
        RULES_KEY: dict(DEFAULT_RULES),
        REVIEW_QUEUE_KEY: [],
        TAB_METADATA_KEY: {},
        SESSION_START_KEY: now_ms,
    }


# --- Generic Helper Functions ---

def _load_json_config(file_path: str):
    """Load a JSON file. Missing or unreadable files raise; callers decide the fallback."""
    with open(file_path, 'r', encoding='utf-8') as f:
        return json.load(f)


def _save_json_config(file_path: str, data):
    """A generic function to save data to a JSON file."""
    try:
        with open(file_path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=4)
    except IOError as e:
        logger.error(f"Could not write to config file {file_path}: {e}")
        raise


#region RULES
# --- Rule backup / restore ---

def export_rules(file_path: str, rules: Dict[str, str]) -> None:
    """Backup rules to a JSON file"""
    _save_json_config(file_path, rules)
    logger.info(f"Exported {len(rules)} rules to {file_path}")


def import_rules(file_path: str) -> Dict[str, str]:
    """
    Load rules from a backup file.

    Entries that are not non-empty pattern -> category strings are dropped.

    Raises:
        OSError: if the file cannot be read.
        ValueError: if the file is not a JSON object.
    """
    data = _load_json_config(file_path)
    if not isinstance(data, dict):
        raise ValueError(f"Rules file {file_path} must contain a JSON object")
    rules = {pattern: category for pattern, category in data.items()
             if pattern and isinstance(category, str) and category}
    if len(rules) != len(data):
        logger.warning(f"Skipped {len(data) - len(rules)} malformed rules from {file_path}")
    return rules
#endregion
