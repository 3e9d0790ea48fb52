"""
Migration: membership_index
Created: 2026-10-19T09:12:44.518230

Description:
    Builds the team_memberships index (one document per event and user) from
    the rosters stored on existing team documents, and normalizes the skills
    stored on user documents (trimmed, lower-cased, de-duplicated) so the
    teammate search compares like with like.
"""

from google.cloud.firestore_v1 import Client

from teamfinder.core.utils import membership_key, normalize_skills

TEAMS_COLLECTION = "teams"
USERS_COLLECTION = "users"
MEMBERSHIPS_COLLECTION = "team_memberships"


def upgrade(db: Client) -> None:
    """
    Backfill membership index documents and normalize user skills.

    Args:
        db: Firestore client instance
    """
    print(f"  Processing collection: {TEAMS_COLLECTION}")
    indexed = 0
    for doc in db.collection(TEAMS_COLLECTION).stream():
        team = doc.to_dict()
        event_id = team.get("event_id")
        if not event_id:
            continue
        for user_id in team.get("members", []):
            role = "leader" if user_id == team.get("leader_id") else "member"
            db.collection(MEMBERSHIPS_COLLECTION).document(membership_key(event_id, user_id)).set({
                "event_id": event_id,
                "user_id": user_id,
                "team_id": doc.id,
                "role": role,
                "joined_at": team.get("created_at", ""),
            })
            indexed += 1
    print(f"    Indexed {indexed} memberships")

    print(f"  Processing collection: {USERS_COLLECTION}")
    updated = 0
    for doc in db.collection(USERS_COLLECTION).stream():
        skills = doc.to_dict().get("skills", [])
        normalized = normalize_skills(skills)
        if normalized != skills:
            doc.reference.update({"skills": normalized})
            updated += 1
    print(f"    Updated {updated} users")


def downgrade(db: Client) -> None:
    """
    Drop the membership index. Skill normalization is not reversed.

    Args:
        db: Firestore client instance
    """
    for doc in db.collection(MEMBERSHIPS_COLLECTION).stream():
        doc.reference.delete()
