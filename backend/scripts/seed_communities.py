"""CLI script to load communities from a JSON file into the backend DB.
Usage: python scripts/seed_communities.py communities.json

The file holds a list of objects with `name` and optional `description`
and `image_url`. Communities whose name already exists are skipped.
"""
import sys
import argparse
import json
import pathlib
# Ensure `backend/` is on sys.path so `app` package imports work when running this script directly
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
from sqlmodel import Session
from app.database import engine, create_db_and_tables
from app import models, repositories


def seed(items, session: Session) -> dict:
    """Create missing communities and return created/skipped counts."""
    repo = repositories.CommunityRepository(session)
    created = 0
    skipped = 0
    for item in items:
        name = (item.get('name') or '').strip()
        if not name or repo.get_by_name(name):
            skipped += 1
            continue
        repo.create(models.Community(
            name=name,
            description=item.get('description'),
            image_url=item.get('image_url'),
        ))
        created += 1
    return {'created': created, 'skipped': skipped}


def main(path: pathlib.Path):
    items = json.loads(path.read_text(encoding='utf-8'))
    if not isinstance(items, list):
        print(f'{path} must contain a JSON list')
        return
    create_db_and_tables()
    with Session(engine) as session:
        result = seed(items, session)
    print(f"Created communities: {result['created']}, skipped {result['skipped']}")


if __name__ == '__main__':
    parser = argparse.ArgumentParser()
    parser.add_argument('path', type=pathlib.Path, help='JSON file with a list of communities')
    args = parser.parse_args()
    main(args.path)
