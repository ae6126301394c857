"""
Locust Load Test Suite

Seed first (one token per line):
  python scripts/seed.py --capacity 10 --invitations 500 --tokens-file tokens.txt

Run scenarios:
  LOCUST_TOKENS_FILE=tokens.txt locust -f locustfile.py --tags concurrency  # Test overbooking
  LOCUST_TOKENS_FILE=tokens.txt locust -f locustfile.py --tags replay       # Test single-use tokens
  locust -f locustfile.py --tags edge                                      # Test bad input
  LOCUST_TOKENS_FILE=tokens.txt locust -f locustfile.py                    # All tests

Disable the submission rate limit on the target (RATE_LIMIT_ENABLED=false),
otherwise every simulated user shares one client address.
"""

import os
import random
import threading
from locust import HttpUser, task, between, tag, events

# Shared state
TOKENS = []
_token_lock = threading.Lock()
REDEEMED = []  # tokens that produced a registration, replayed by ReplayUser
QR_CODES = []


def random_guest():
    n = random.randint(10000, 99999)
    return {
        "name": f"Load Guest {n}",
        "company": "Load Test Inc",
        "title": "Tester",
        "email": f"load_{n}@test.com",
    }


def next_token():
    with _token_lock:
        return TOKENS.pop() if TOKENS else None


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    """Setup: load seeded invitation tokens."""
    path = os.environ.get("LOCUST_TOKENS_FILE", "tokens.txt")
    if os.path.exists(path):
        with open(path) as f:
            TOKENS.extend(line.strip() for line in f if line.strip())
    random.shuffle(TOKENS)
    print("\n" + "=" * 60)
    print(f"SETUP: loaded {len(TOKENS)} invitation tokens from {path}")
    print("=" * 60)


class ConcurrencyUser(HttpUser):
    """
    TEST 1: Concurrency - 500 invitations -> 10 seats

    Run: locust -f locustfile.py --tags concurrency -u 100 -r 50 --run-time 30s

    After test, verify:
      SELECT current_registrations, capacity FROM events WHERE id = X;
      SELECT status, COUNT(*) FROM registrants WHERE event_id = X GROUP BY status;
    current_registrations must be <= capacity and equal the CONFIRMED party seats.
    """
    wait_time = between(0, 0.1)

    @tag("concurrency")
    @task
    def redeem_invitation(self):
        """All users fight for the same seats; the overflow is waitlisted."""
        token = next_token()
        if token is None:
            return

        companion = random_guest() if random.random() < 0.3 else None
        with self.client.post("/api/v1/rsvp/submit",
            json={"token": token, **random_guest(), "companion": companion},
            name="/api/v1/rsvp/submit",
            catch_response=True
        ) as resp:
            if resp.status_code == 201:
                data = resp.json()
                REDEEMED.append(token)
                if data["outcome"] == "CONFIRMED":
                    QR_CODES.append(data["registrant"]["qr_code"])
                resp.success()
            elif resp.status_code == 409:
                resp.success()  # Expected: event full without waitlist
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class ReplayUser(HttpUser):
    """
    TEST 2: Single-use invitations under replay

    Run: locust -f locustfile.py --tags replay -u 50 -r 25 --run-time 30s

    Every replayed token must be refused with 409 invitation_already_used.
    """
    wait_time = between(0.1, 0.5)

    @tag("replay")
    @task(5)
    def replay_redeemed_token(self):
        if not REDEEMED:
            return
        with self.client.post("/api/v1/rsvp/submit",
            json={"token": random.choice(REDEEMED), **random_guest()},
            name="/api/v1/rsvp/submit [replay]",
            catch_response=True
        ) as resp:
            if resp.status_code == 409 and resp.json().get("code") == "invitation_already_used":
                resp.success()
            else:
                resp.failure(f"Replay accepted or wrong error: {resp.status_code}")

    @tag("replay", "read")
    @task(3)
    def validate_token(self):
        if REDEEMED:
            self.client.get(f"/api/v1/invitations/validate/{random.choice(REDEEMED)}",
                name="/api/v1/invitations/validate/{token}")

    @tag("replay")
    @task(2)
    def scan_at_door(self):
        """Door scanners racing: first scan 200, later scans 400."""
        if not QR_CODES:
            return
        with self.client.post(f"/api/v1/check-in/{random.choice(QR_CODES)}",
            name="/api/v1/check-in/{token}",
            catch_response=True
        ) as resp:
            if resp.status_code in [200, 400]:
                resp.success()
            else:
                resp.failure(f"Unexpected: {resp.status_code}")

    @tag("replay")
    @task(1)
    def health_check(self):
        """Monitor system health."""
        self.client.get("/health")


class EdgeCaseUser(HttpUser):
    """
    TEST 3: Edge cases - Bad input handling

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s

    System should NOT crash, return proper error codes.
    """
    wait_time = between(0.5, 1.5)

    @tag("edge")
    @task
    def unknown_token(self):
        with self.client.post("/api/v1/rsvp/submit",
            json={"token": "no-such-token", **random_guest()},
            catch_response=True
        ) as resp:
            if resp.status_code == 404:
                resp.success()
            else:
                resp.failure(f"Expected 404, got {resp.status_code}")

    @tag("edge")
    @task
    def invalid_email(self):
        with self.client.post("/api/v1/rsvp/submit",
            json={"token": "x", **random_guest(), "email": "not-an-email"},
            catch_response=True
        ) as resp:
            if resp.status_code == 422:
                resp.success()
            else:
                resp.failure(f"Expected 422, got {resp.status_code}")

    @tag("edge")
    @task
    def malformed_json(self):
        """Send garbage data."""
        with self.client.post("/api/v1/rsvp/submit",
            data="not json at all",
            catch_response=True
        ) as resp:
            if resp.status_code in [400, 422]:
                resp.success()
            else:
                resp.failure(f"Expected 400/422, got {resp.status_code}")

    @tag("edge")
    @task
    def unknown_qr_code(self):
        with self.client.post("/api/v1/check-in/ffffffffffffffffffffffffffffffff",
            catch_response=True
        ) as resp:
            if resp.status_code == 404:
                resp.success()
            else:
                resp.failure(f"Expected 404, got {resp.status_code}")
