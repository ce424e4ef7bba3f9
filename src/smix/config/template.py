"""Default configuration file written on first run."""

CONFIG_TEMPLATE = """\
# smix configuration file
# Provider settings control which LLM provider to use

# Global default provider (claude or gemini)
provider: claude

# Global default model (optional, uses provider default if omitted)
# model: sonnet

# Provider-specific settings
providers:
  claude:
    # Path to claude CLI if not in PATH (optional)
    # cli_path: /usr/local/bin/claude
  gemini:
    # API key (prefer the SMIX_GEMINI_API_KEY environment variable
    # or `smix config set-key gemini`)

# Per-command overrides (optional)
# Uncomment and customize as needed
#commands:
#  ask:
#    provider: gemini
#    model: gemini-3-flash-preview
#  do:
#    provider: gemini
#    model: gemini-3-flash-preview
#  pr:
#    provider: claude
#    model: sonnet

# Observability settings
log_level: info  # debug, info, warn, error
"""
