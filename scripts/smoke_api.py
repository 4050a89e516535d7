#!/usr/bin/env python3
"""Smoke-test a running /api/analyze deployment.

Runs a fixed set of scenarios (valid request, bad username, missing
parameters, bad seniority, rate-limit burst, rate-limit headers) and prints
one PASS/FAIL line per scenario. Exits 1 if any scenario fails.

Usage:
    python scripts/smoke_api.py
    python scripts/smoke_api.py --base-url https://analyzer.example.com
    python scripts/smoke_api.py --skip-valid   # no OpenAI/GitHub credentials
"""

import argparse
import asyncio
import json
import sys

import aiohttp

VALID_QUERY = {
    "username": "octocat",
    "job_title": "Senior Engineer",
    "required_skills": "JavaScript,React",
    "seniority": "senior",
    "focus": "fullstack",
}
BASE_QUERY = {
    "job_title": "Engineer",
    "required_skills": "JS",
    "seniority": "mid",
    "focus": "frontend",
}


async def _get(
    session: aiohttp.ClientSession, url: str, params: dict[str, str],
) -> tuple[int, dict, dict[str, str]]:
    async with session.get(url, params=params) as resp:
        try:
            body = await resp.json(content_type=None)
        except json.JSONDecodeError:
            body = {"raw": await resp.text()}
        return resp.status, body, dict(resp.headers)


def _report(name: str, ok: bool, detail: object) -> bool:
    status = "PASS" if ok else "FAIL"
    print(f"[{status}] {name}: {detail}")
    return ok


async def run(base_url: str, skip_valid: bool, burst: int) -> bool:
    url = f"{base_url.rstrip('/')}/api/analyze"
    print(f"Testing API at: {url}\n")
    results: list[bool] = []
    timeout = aiohttp.ClientTimeout(total=90)

    async with aiohttp.ClientSession(timeout=timeout) as session:
        if not skip_valid:
            status, body, _ = await _get(session, url, VALID_QUERY)
            results.append(_report("valid request", status == 200, status))

        status, body, _ = await _get(session, url, {**BASE_QUERY, "username": "invalid@user"})
        results.append(_report("invalid username", status == 400, body.get("error")))

        status, body, _ = await _get(session, url, {"username": "octocat", "job_title": "Engineer"})
        results.append(_report("missing parameters", status == 400, body.get("error")))

        status, body, _ = await _get(session, url, {**BASE_QUERY, "username": "octocat", "seniority": "x"})
        results.append(_report("invalid seniority", status == 400, body.get("error")))

        status, _, headers = await _get(session, url, {**BASE_QUERY, "username": "bad@"})
        has_headers = all(
            h in headers
            for h in ("X-RateLimit-Limit", "X-RateLimit-Remaining", "X-RateLimit-Reset")
        )
        results.append(_report("rate-limit headers", has_headers, headers.get("X-RateLimit-Remaining")))

        # Invalid usernames keep the burst away from GitHub and OpenAI.
        limited = False
        for i in range(1, burst + 1):
            status, body, _ = await _get(session, url, {**BASE_QUERY, "username": f"bad@{i}"})
            if status == 429:
                limited = True
                print(f"  request {i}: 429 retryAfter={body.get('retryAfter')}")
                break
        results.append(_report("rate limiting", limited, f"within {burst} requests"))

    return all(results)


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--base-url", default="http://localhost:9000", help="Server base URL")
    parser.add_argument(
        "--skip-valid",
        action="store_true",
        help="Skip the scenario that calls GitHub and OpenAI",
    )
    parser.add_argument("--burst", type=int, default=11, help="Requests in the rate-limit burst")
    args = parser.parse_args()

    ok = asyncio.run(run(args.base_url, args.skip_valid, args.burst))
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
