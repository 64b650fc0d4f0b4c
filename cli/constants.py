"""CLI constants."""

from prompt_toolkit.styles import Style

COMMANDS = ["upload", "download", "split", "assemble", "clear", "exit", "help"]

STYLE = Style.from_dict(
    {
        "prompt": "#2E9E6B bold",
        "command": "#0088ff bold",
    }
)

WELCOME_TITLE = "ChunkRelay CLI - content-chunked file transfer"
WELCOME_HELP = "Type 'help' for commands or 'exit' to quit.\n"

PROMPT_TEXT = "chunkrelay> "

HELP_TEXT = """Available commands:
  upload file-list                    Upload files to the relay (each is split and published)
  download <base_url>                 Ask the relay to fetch links.txt + chunks from base_url and rebuild the file
  split <file> <store_dir>            Split a local file into store_dir (links.txt + <digest>.zip)
  assemble <store_dir> [output_dir]   Rebuild a file from a local store_dir
  clear                               Clear screen and redisplay welcome message
  help                                Show this help
  exit                                Exit REPL

Examples:
  upload report.pdf
  download http://peer:11451/published/4f1c0e6a9b2d4e8f8a7b6c5d4e3f2a1b
  split video.mp4 ./out
  assemble ./out ./restored"""
