"""Live validation script - run the actor against real accounts and check normalization."""

import asyncio
import json
import sys
from pathlib import Path
from datetime import datetime

from igsnap.config import ScraperConfig
from igsnap.core.matcher import match_by_username, select_post_records
from igsnap.core.normalizer import normalize_posts, normalize_profile
from igsnap.core.remote import ApifyJobClient

# Test accounts
USERNAMES = [
    "natgeo",
    "nasa",
    "instagram",
]

FIXTURES_DIR = Path(__file__).parent.parent / "tests" / "fixtures"


async def validate_account(client: ApifyJobClient, username: str, save_fixture: bool = True) -> dict:
    """Run the actor for one account and validate what comes back."""
    print(f"\n{'='*60}")
    print(f"Scraping @{username}...")
    print(f"{'='*60}")

    start = datetime.now()

    try:
        handle = await client.submit(username)
        records = await client.fetch(handle)
    except Exception as e:
        print(f"❌ Actor run failed: {e}")
        return {"username": username, "success": False, "error": str(e)}

    duration_s = (datetime.now() - start).total_seconds()
    print(f"✓ Run {handle.run_id} finished in {duration_s:.0f}s with {len(records)} records")

    if save_fixture:
        FIXTURES_DIR.mkdir(parents=True, exist_ok=True)
        fixture_path = FIXTURES_DIR / f"live_{username}.json"
        fixture_path.write_text(json.dumps(records, indent=2, ensure_ascii=False), encoding="utf-8")
        print(f"✓ Saved fixture: {fixture_path}")

    profile_record = match_by_username(records, username)
    profile = normalize_profile(profile_record, username)
    posts = normalize_posts(select_post_records(records, profile_record))

    issues = []
    if profile_record is None:
        issues.append("no record matched the username")
    if not profile.full_name:
        issues.append("missing full name")
    if profile.followers_count == 0:
        issues.append("followers count is 0")
    if not posts:
        issues.append("no posts")
    if any(not post.images and not post.videos for post in posts):
        issues.append("post without media")

    print(f"\n--- Profile ---")
    print(f"  Username: @{profile.username}")
    print(f"  Full Name: {profile.full_name}")
    print(f"  Followers: {profile.followers_count:,}")
    print(f"  Following: {profile.following_count:,}")
    print(f"  Verified: {profile.verified}")

    print(f"\n--- Posts ({len(posts)} found) ---")
    for i, post in enumerate(posts[:3]):
        print(f"  [{i+1}] {post.short_code} {post.timestamp}")
        print(f"      Likes: {post.likes_count:,} | Comments: {post.comments_count:,} | Images: {len(post.images)}")

    if issues:
        print(f"\n⚠️  Issues: {', '.join(issues)}")
    else:
        print("\n✓ All checks passed")

    return {"username": username, "success": not issues, "issues": issues}


async def main():
    config = ScraperConfig()
    if not config.apify_token:
        print("APIFY_API_TOKEN is not set")
        sys.exit(1)

    client = ApifyJobClient(
        config.apify_token,
        actor_id=config.apify_actor_id,
        results_type=config.apify_results_type,
        results_limit=12,
    )

    usernames = sys.argv[1:] or USERNAMES
    results = [await validate_account(client, u) for u in usernames]

    print(f"\n{'='*60}")
    passed = sum(1 for r in results if r["success"])
    print(f"Validated {passed}/{len(results)} accounts")
    sys.exit(0 if passed == len(results) else 1)


if __name__ == "__main__":
    asyncio.run(main())
