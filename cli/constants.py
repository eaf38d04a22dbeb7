"""CLI constants and configuration."""

from prompt_toolkit.styles import Style

COMMANDS = ["link", "chunks", "latest", "publications", "revoke", "clear", "exit", "help"]

STYLE = Style.from_dict(
    {
        "prompt": "#2E9E6A bold",
        "command": "#0088ff bold",
    }
)

GREEN = "\033[38;2;46;158;106m"
RESET = "\033[0m"

LOGO = f"""{GREEN}
  ___                 _
 / __|___ _  _ _ _ _ (_)___ _ _
| (__/ _ \\ || | '_| || / -_) '_|
 \\___\\___/\\_,_|_| |_||_\\___|_|
{RESET}"""

WELCOME_TITLE = "Backup Courier CLI - backup links and chunked deliveries"
WELCOME_HELP = "Type 'help' for commands or 'exit' to quit.\n"

PROMPT_TEXT = "courier> "

HELP_TEXT = """Available commands:
  link <requester_id>                      Publish the latest backup as a download link
  chunks <requester_id> [max_chunk_size]   Send the latest backup to the chat in parts
  latest                                   Show the latest backup and its part count
  publications                             List live download links
  revoke <token>                           Revoke a download link
  clear                                    Clear screen and redisplay welcome message
  help                                     Show this help
  exit                                     Exit REPL

Deliveries obey the per-requester and global cooldowns of the server.
Examples:
  link 123456789
  chunks 123456789
  chunks 123456789 8M
  publications
  revoke AbCdEf123456"""
