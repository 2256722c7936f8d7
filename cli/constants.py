"""Shell constants and configuration."""

from prompt_toolkit.styles import Style

COMMANDS = ["share", "open", "download", "sweep", "qr", "clear", "exit", "help"]

STYLE = Style.from_dict(
    {
        "prompt": "#0A84FF bold",
        "command": "#0088ff bold",
    }
)

AIRDROP_BLUE = "\033[38;2;10;132;255m"
GREEN = "\033[32m"
RESET = "\033[0m"

LOGO = f"""{AIRDROP_BLUE}
    _    _      ____                   
   / \\  (_)_ __|  _ \\ _ __ ___  _ __  
  / _ \\ | | '__| | | | '__/ _ \\| '_ \\ 
 / ___ \\| | |  | |_| | | | (_) | |_) |
/_/   \\_\\_|_|  |____/|_|  \\___/| .__/ 
                               |_|    
{RESET}"""

WELCOME_TITLE = "AirDrop - Share files through a local link"
WELCOME_HELP = "Type 'help' for commands or 'exit' to quit.\n"

PROMPT_TEXT = "airdrop> "

HELP_TEXT = """Available commands:
  share <file> [file ...]             Store files as a new share and print its link
  open <link|id>                      Open a share link and list its files
  download <index|all> [output_dir]   Download one file (1-based) or all files of the open share
  sweep                               Remove expired shares now
  qr <text> [size] [output_path]      Save the QR image for text (cached for offline use)
  clear                               Clear screen and redisplay welcome message
  help                                Show this help
  exit                                Exit REPL

Shares expire after the configured TTL (24 hours by default).
Examples:
  share report.pdf photo.jpg
  open http://localhost:8080?id=abc123
  download 1
  download all downloads/
  qr http://localhost:8080?id=abc123 300 qr.png"""

NO_BUNDLE_OPEN = "No share is open. Use 'open <link|id>' first."
NOT_FOUND_MESSAGE = "Files not found or expired"
UPLOAD_FAILED_MESSAGE = "Upload failed. Please try again."
STORAGE_FULL_MESSAGE = (
    "Storage is full. Run 'sweep' or wait for older shares to expire, then try again."
)
