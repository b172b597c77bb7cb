"""Database seeder: users, blogs and comments spread over time for ranking runs."""
import argparse
import asyncio
import random
import time
from datetime import timedelta

from myblog.config import settings
from myblog.database import Database
from myblog.models import Blog, Comment, User, new_id, utcnow
from myblog.security import hash_password

TOPICS = ["python", "fastapi", "postgresql", "redis", "docker", "kubernetes",
          "react", "typescript", "aws", "devops", "testing", "performance"]

DEFAULT_PASSWORD = "password"


async def seed(small: bool = False, url: str | None = None):
    num_users = 10 if small else 50
    num_blogs = 50 if small else 2000
    max_comments_per_blog = 4 if small else 20
    # Comments land up to this many days back, so short windows see a subset.
    comment_spread_days = 30

    print(f"Seeding: {num_users} users, {num_blogs} blogs, up to {max_comments_per_blog} comments each")
    start = time.perf_counter()

    database = Database(url or settings.DATABASE_URL)
    await database.drop_all()
    await database.create_all()

    # Hashing once keeps seeding fast; every seeded user shares the password.
    password_hash = hash_password(DEFAULT_PASSWORD)
    now = utcnow()
    total_comments = 0

    async with database.write().session() as session:
        users = []
        for i in range(num_users):
            user = User(
                id=new_id(),
                username=f"user_{i:04d}",
                email=f"user_{i:04d}@example.com",
                password_hash=password_hash,
            )
            session.add(user)
            users.append(user)
        await session.flush()
        print(f"  Created {len(users)} users")

        batch_size = 500
        for batch_start in range(0, num_blogs, batch_size):
            batch_end = min(batch_start + batch_size, num_blogs)
            for i in range(batch_start, batch_end):
                created = now - timedelta(days=random.randint(0, 365))
                blog = Blog(
                    id=new_id(),
                    user_id=random.choice(users).id,
                    title=f"Blog {i}: Notes on {random.choice(TOPICS)}",
                    content=f"This is the full content of blog {i}. " * 20,
                    created_at=created,
                    updated_at=created,
                )
                session.add(blog)

                for _ in range(random.randint(0, max_comments_per_blog)):
                    commented = now - timedelta(
                        days=random.randint(0, comment_spread_days),
                        seconds=random.randint(0, 86399),
                    )
                    session.add(Comment(
                        id=new_id(),
                        blog_id=blog.id,
                        user_id=random.choice(users).id,
                        content=f"Great post on {random.choice(TOPICS)}!",
                        created_at=commented,
                        updated_at=commented,
                    ))
                    total_comments += 1
            await session.flush()
            print(f"  Batch {batch_start}-{batch_end}: blogs created")

    await database.dispose()

    elapsed = time.perf_counter() - start
    print(f"\nSeeding complete in {elapsed:.1f}s")
    print(f"  Users: {num_users} (password: {DEFAULT_PASSWORD!r})")
    print(f"  Blogs: {num_blogs}")
    print(f"  Comments: {total_comments}")


def main():
    parser = argparse.ArgumentParser(description="Seed the blog database")
    parser.add_argument("--small", action="store_true", help="Use small dataset (50 blogs)")
    parser.add_argument("--url", help="Database URL (defaults to DATABASE_URL)")
    args = parser.parse_args()
    asyncio.run(seed(small=args.small, url=args.url))


if __name__ == "__main__":
    main()
