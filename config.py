import os

# files
provider_name = "provider.json"
provider_path = os.getenv("TABFLOW_CONFIG_DIR", os.path.join(os.path.dirname(__file__), "config"))

# categories
BASE_CATEGORIES = ["Work", "Social", "Entertainment", "Learning", "Shopping", "Neutral", "Others"]
DISTRACTION_CATEGORIES = ("Social", "Entertainment", "Shopping")
PRODUCTIVE_CATEGORIES = ("Work", "Learning", "Neutral")
FALLBACK_CATEGORY = "Others"

# classification
MIN_TEXT_LENGTH = 50          # the classifier needs strictly more text than this
MAX_CLASSIFIER_INPUT = 512    # characters sent to the classifier
MAX_EXTRACTED_TEXT = 2000     # characters kept from a page extraction
REVIEW_CONFIDENCE_THRESHOLD = 0.7
CLASSIFIER_TIMEOUT_SECONDS = float(os.getenv("TABFLOW_CLASSIFIER_TIMEOUT", "10"))
PROVIDER_HTTP_TIMEOUT = int(os.getenv("TABFLOW_PROVIDER_HTTP_TIMEOUT", "30"))

# scoring
TIME_SINK_THRESHOLD_MS = 5 * 60 * 1000
IDLE_SCORE = 100

# focus mode
INTERSTITIAL_URL = os.getenv("TABFLOW_INTERSTITIAL_URL", "tabflow://mindful_pause.html")
WEB_SCHEMES = ("http://", "https://")

# worker pool for background classification
CLASSIFICATION_WORKERS = int(os.getenv("TABFLOW_CLASSIFICATION_WORKERS", "2"))
