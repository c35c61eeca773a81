from locust import HttpUser, task, between, events
import itertools
import os
import requests
from datetime import timedelta

LOAD_CLUB_ID = 9001
LOAD_LEADER_ID = 900000
MEMBER_IDS = itertools.count(900001)

# Populated in on_test_start
STATE = {}


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    """
    Seed a club, an event and memberships straight into the database the
    target server uses (same DATABASE_URL and SECRET_KEY), then open a
    long check-in session through the API.
    """
    from dotenv import load_dotenv
    load_dotenv()

    from clubcheckin.core.security import create_access_token
    from clubcheckin.db import Base, engine, get_db_context
    from clubcheckin.db.models import ClubMembership, Event

    base_url = os.getenv("LOCUST_HOST") or environment.host
    user_count = int(os.getenv("LOCUST_SEED_MEMBERS", "2000"))

    print("Seeding load test data...")
    Base.metadata.create_all(bind=engine)
    with get_db_context() as db:
        event = Event(club_id=LOAD_CLUB_ID, title="Load test event")
        db.add(event)
        db.add(ClubMembership(user_id=LOAD_LEADER_ID, club_id=LOAD_CLUB_ID, role="leader", status="approved"))
        for user_id in range(LOAD_LEADER_ID + 1, LOAD_LEADER_ID + 1 + user_count):
            db.add(ClubMembership(user_id=user_id, club_id=LOAD_CLUB_ID, role="member", status="approved"))
        db.commit()
        event_id = event.id

    leader_token = create_access_token(
        {"sub": str(LOAD_LEADER_ID), "role": "leader", "first_name": "Load", "last_name": "Leader"},
        expires_delta=timedelta(hours=4),
    )
    response = requests.post(
        f"{base_url}/api/v1/checkin/session/{event_id}",
        json={"expire_time": "23:59"},
        headers={"Authorization": f"Bearer {leader_token}"},
    )
    if response.status_code != 200:
        raise RuntimeError(f"Failed to start check-in session: {response.status_code} {response.text}")

    STATE["event_id"] = event_id
    STATE["passcode"] = response.json()["passcode"]
    print(f"Session open for event {event_id}")


class CheckInUser(HttpUser):
    wait_time = between(1, 2)

    def on_start(self):
        from clubcheckin.core.security import create_access_token

        self.user_id = next(MEMBER_IDS)
        token = create_access_token(
            {"sub": str(self.user_id), "role": "member", "first_name": "Load", "last_name": str(self.user_id)},
            expires_delta=timedelta(hours=4),
        )
        self.client.headers["Authorization"] = f"Bearer {token}"

    @task
    def passcode_check_in(self):
        with self.client.post(
            "/api/v1/checkin/passcode",
            json={"event_id": STATE["event_id"], "passcode": STATE["passcode"]},
            name="POST /api/v1/checkin/passcode",
            catch_response=True
        ) as response:
            # Repeat attempts by the same user conflict or hit the per-user limit
            if response.status_code in (409, 429):
                response.success()
            elif response.status_code != 200:
                response.failure(f"Check-in failed for user {self.user_id}: {response.text}")
