"""Project-wide constants (storage keys, TTL, cache names, manifest)."""

STORAGE_KEY_PREFIX: str = "airdrop_"
DEFAULT_TTL_MS: int = 24 * 60 * 60 * 1000  # 24 hours
DEFAULT_STORE_PATH: str = "~/.airdrop/store.db"
DEFAULT_SWEEP_INTERVAL_SECONDS: int = 3600

BUNDLE_ID_HALF_LENGTH: int = 13
BUNDLE_ID_MAX_ATTEMPTS: int = 5

DEFAULT_MIME_TYPE: str = "application/octet-stream"

# Resource cache generations
STATIC_CACHE_NAME: str = "airdrop-v1.0-beta"
DYNAMIC_CACHE_NAME: str = "airdrop-dynamic-v1.0"
CACHE_KEY_PREFIX: str = "cache:"

LOGO_URL: str = "https://ineqe.com/wp-content/uploads/2022/11/Airdrop_Logo2022.png"
SHELL_ENTRY_URL: str = "./index.html"

STATIC_CACHE_URLS: tuple[str, ...] = (
    "./",
    "./index.html",
    "./styles.css",
    "./script.js",
    "./manifest.json",
    LOGO_URL,
)

DEFAULT_APP_URL: str = "http://localhost:8080/"
BACKGROUND_SYNC_TAG: str = "upload-sync"
SKIP_WAITING_MESSAGE: str = "SKIP_WAITING"

QR_ENDPOINT: str = "https://api.qrserver.com/v1/create-qr-code/"
DEFAULT_QR_SIZE: int = 200

DOWNLOAD_STAGGER_SECONDS: float = 0.5
NETWORK_TIMEOUT_SECONDS: float = 30.0
