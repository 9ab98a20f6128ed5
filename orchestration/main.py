"""
Token Vision — Entry Point

Thin wrapper that delegates to bot/client.py.

To run: python orchestration/main.py
   or:  python -m bot.client
   or:  token-vision   (console script, after pip install)
"""

from bot.client import run

if __name__ == "__main__":
    run()
