"""Hash a local media file and submit it to a running service."""
from __future__ import annotations

import argparse
import asyncio
import json
import sys

from media_anchor.core.settings import settings
from media_anchor.utils.submit_client import SubmissionClient, SubmissionClientError


async def _submit(args: argparse.Namespace) -> dict[str, object]:
    metadata = json.loads(args.metadata)
    async with SubmissionClient(
        args.base_url,
        client_id=args.client_id,
        client_secret=args.client_secret,
    ) as client:
        return await client.submit_file(args.path, metadata, media_type=args.media_type)


def main() -> None:
    parser = argparse.ArgumentParser(description="Submit a media file hash for anchoring")
    parser.add_argument("path", help="File to hash and submit")
    parser.add_argument("--media-type", choices=["video", "audio"], default="video")
    parser.add_argument("--metadata", default="{}", help="JSON object sent as metadata")
    parser.add_argument("--base-url", default=f"http://127.0.0.1:{settings.port}")
    parser.add_argument("--client-id", default=settings.client_id)
    parser.add_argument("--client-secret", default=settings.client_secret)
    args = parser.parse_args()

    try:
        result = asyncio.run(_submit(args))
    except SubmissionClientError as exc:
        print(f"[submit] rejected: {exc}", file=sys.stderr)
        sys.exit(1)
    except (OSError, ValueError) as exc:
        print(f"[submit] ERROR: {exc}", file=sys.stderr)
        sys.exit(1)

    print(json.dumps(result, indent=2))


if __name__ == "__main__":
    main()
