"""
write_load.py: simple async load script for page views and link clicks

Usage:
  python write_load.py --base http://127.0.0.1:8000 --profile demo \
      --links demo-link-0,demo-link-1 --count 2000 --concurrency 100
"""
import argparse
import asyncio
import random
import time
from datetime import datetime, timezone

import httpx

USER_AGENTS = [
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) Mobile/15E148",
    "Mozilla/5.0 (Linux; Android 14; Pixel 8) Mobile Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) Chrome/128.0",
]


def _now_iso():
    return datetime.now(timezone.utc).isoformat()


async def _send_one(client: httpx.AsyncClient, base: str, profile: str, links):
    headers = {"user-agent": random.choice(USER_AGENTS)}
    try:
        if links and random.random() < 0.4:
            r = await client.post(
                f"{base}/profiles/{profile}/clicks",
                json={"link_id": random.choice(links)},
                headers=headers,
                timeout=10,
            )
        else:
            r = await client.post(f"{base}/profiles/{profile}/views", headers=headers, timeout=10)
        return r.status_code == 202
    except httpx.HTTPError:
        return False


async def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--base", default="http://127.0.0.1:8000")
    parser.add_argument("--profile", default="demo")
    parser.add_argument("--links", default="", help="comma-separated link ids to click")
    parser.add_argument("--count", type=int, default=2000)
    parser.add_argument("--concurrency", type=int, default=100)
    args = parser.parse_args()

    links = [l for l in args.links.split(",") if l]
    start_iso = _now_iso()
    t0 = time.perf_counter()
    success = 0

    limit = httpx.Limits(max_connections=args.concurrency, max_keepalive_connections=args.concurrency)
    async with httpx.AsyncClient(limits=limit) as client:
        sem = asyncio.Semaphore(args.concurrency)

        async def _task():
            nonlocal success
            async with sem:
                if await _send_one(client, args.base, args.profile, links):
                    success += 1

        await asyncio.gather(*(_task() for _ in range(args.count)))

    dt = time.perf_counter() - t0
    print(f"START: {start_iso}")
    print(f"END:   {_now_iso()}")
    print(f"TOTAL: {dt:.3f} s")
    print(f"OPS:   writes={args.count}, ok={success}, fail={args.count - success}")
    if dt > 0:
        print(f"TPS:   {success/dt:.1f} req/s")


if __name__ == "__main__":
    asyncio.run(main())
