"""
Probe script to print the vision/light fields of the tokens currently
selected in the connected Foundry VTT world.
"""
import asyncio
import os
import sys
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from dotenv import load_dotenv
load_dotenv()

from foundry.client import FoundryClient
from foundry.token import FoundryToken


async def main():
    fc = FoundryClient()
    try:
        if not await fc.connect():
            print("FAILED to connect to Foundry VTT relay!")
            sys.exit(1)

        print(f"Connected to relay at {fc.relay_url} (client: {fc.client_id})")
        print("=" * 70)

        tokens = await FoundryToken.selected(fc)
        if not tokens:
            print("No tokens selected.")
            return

        for token in tokens:
            fields = await token.get_fields()
            print(f"\n{token.name} ({token.uuid})")
            for key, value in fields.to_update().items():
                print(f"  {key}: {value}")
    finally:
        await fc.close()


if __name__ == "__main__":
    asyncio.run(main())
