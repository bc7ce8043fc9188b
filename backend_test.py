import os
import sys
import json
from datetime import datetime

import requests


class SymposiumAPITester:
    def __init__(self, base_url=None, admin_key=None):
        self.base_url = (base_url or os.environ.get("SYMPOSIUM_API_URL", "http://localhost:8000/api")).rstrip("/")
        self.admin_key = admin_key or os.environ.get("ADMIN_API_KEY", "")
        self.stamp = datetime.now().strftime("%Y%m%d%H%M%S")
        self.user = None
        self.user_token = None
        self.event_ids = []
        self.tests_run = 0
        self.tests_passed = 0
        self.test_results = []

    def log_test(self, name, success, details=""):
        """Log test result"""
        self.tests_run += 1
        if success:
            self.tests_passed += 1
            print(f"✅ {name}")
        else:
            print(f"❌ {name} - {details}")

        self.test_results.append({
            "test": name,
            "success": success,
            "details": details
        })

    @property
    def admin_headers(self):
        return {"X-ADMIN-KEY": self.admin_key}

    def run_test(self, name, method, endpoint, expected_status, json_body=None, data=None, files=None, headers=None):
        """Run a single API call and compare the status code"""
        url = f"{self.base_url}/{endpoint}"
        try:
            response = requests.request(method, url, json=json_body, data=data, files=files, headers=headers, timeout=30)
        except requests.RequestException as exc:
            self.log_test(name, False, f"Exception: {exc}")
            return False, {}

        success = response.status_code == expected_status
        details = f"Status: {response.status_code}"
        if not success:
            try:
                details += f", Error: {response.json().get('message', 'Unknown error')}"
            except ValueError:
                details += f", Response: {response.text[:100]}"

        self.log_test(name, success, details)
        if not success or not response.content:
            return success, {}
        try:
            return success, response.json()
        except ValueError:
            return success, {}

    def test_health_endpoints(self):
        print("\n🔍 Testing Health Endpoints...")
        self.run_test("Root API endpoint", "GET", "", 200)
        self.run_test("Health check endpoint", "GET", "health", 200)
        self.run_test("Symposium status", "GET", "symposium/status", 200)

    def test_signup_and_login(self):
        print("\n🔍 Testing Auth...")
        email = f"smoke{self.stamp}@example.com"
        ok, body = self.run_test(
            "User signup",
            "POST",
            "auth/signup",
            201,
            json_body={"fullName": "Smoke Tester", "email": email, "password": "smoke123", "college": "Smoke College"},
        )
        if not ok:
            return False
        self.user = body["user"]
        ok, body = self.run_test("User login", "POST", "auth/login", 200, json_body={"email": email, "password": "smoke123"})
        if ok:
            self.user_token = body["accessToken"]
            self.run_test("Current user", "GET", "auth/me", 200, headers={"Authorization": f"Bearer {self.user_token}"})
        return ok

    def _create_event(self, name, fees):
        payload = {
            "symposiumName": "Enigma",
            "eventName": f"{name} {self.stamp}",
            "eventCategory": "Technical",
            "eventDescription": "Smoke test event",
            "numberOfRounds": 2,
            "teamOrIndividual": "Individual",
            "location": "Lab 1",
            "registrationFees": fees,
            "coordinatorName": "Smoke",
            "coordinatorContactNo": "9000000000",
            "coordinatorMail": "coordinator@example.com",
            "lastDateForRegistration": "2030-01-01T00:00:00",
            "rounds": [
                {"roundNumber": 1, "roundDetails": "Prelims", "roundDateTime": "2030-01-02T10:00:00"},
                {"roundNumber": 2, "roundDetails": "Finals", "roundDateTime": "2030-01-03T10:00:00"},
            ],
        }
        ok, body = self.run_test(f"Create event ({name})", "POST", "events", 201, json_body=payload, headers=self.admin_headers)
        if ok:
            self.event_ids.append(body["id"])
        return body if ok else None

    def test_registration_flow(self):
        print("\n🔍 Testing Registration Flow...")
        free_event = self._create_event("Free", 0)
        paid_event = self._create_event("Paid", 200)
        if not (free_event and paid_event and self.user):
            return

        self.run_test(
            "Free registration",
            "POST",
            "registrations/simple",
            201,
            json_body={"userEmail": self.user["email"], "eventId": free_event["id"]},
        )
        transaction_id = f"SMOKE{self.stamp}"
        self.run_test("Transaction id available", "GET", f"registrations/check-transaction/{transaction_id}", 200)
        self.run_test(
            "Paid registration",
            "POST",
            "registrations",
            201,
            data={
                "userId": str(self.user["id"]),
                "eventIds": json.dumps([paid_event["id"]]),
                "transactionId": transaction_id,
                "transactionUsername": "smoke",
                "transactionTime": "10:00",
                "transactionDate": "2030-01-01",
                "transactionAmount": "200",
                "mobileNumber": "9876543210",
            },
            files={"transactionScreenshot": ("proof.png", b"\x89PNG smoke", "image/png")},
        )
        self.run_test(
            "Verify paid registration",
            "POST",
            "verification",
            201,
            json_body={"userId": self.user["id"], "eventId": paid_event["id"], "verified": True},
            headers=self.admin_headers,
        )
        self.run_test(
            "Mark round 1 eligible",
            "POST",
            f"events/{paid_event['id']}/rounds/1/eligible",
            200,
            json_body={"userId": self.user["id"], "status": 1},
            headers=self.admin_headers,
        )
        self.run_test("User registrations", "GET", f"registrations/user/{self.user['id']}", 200)
        self.run_test("Verified event registrations", "GET", f"registrations/event/{paid_event['id']}", 200)

    def cleanup(self):
        for event_id in self.event_ids:
            self.run_test(f"Delete event {event_id}", "DELETE", f"events/{event_id}", 200, headers=self.admin_headers)

    def run_all_tests(self):
        print(f"🚀 Running smoke tests against {self.base_url}")
        self.test_health_endpoints()
        if self.test_signup_and_login():
            self.test_registration_flow()
        self.cleanup()
        return self.print_summary()

    def print_summary(self):
        """Print test summary"""
        print("\n📊 Test Summary:")
        print(f"Tests run: {self.tests_run}")
        print(f"Tests passed: {self.tests_passed}")
        if self.tests_run:
            print(f"Success rate: {(self.tests_passed / self.tests_run * 100):.1f}%")

        if self.tests_passed < self.tests_run:
            print("\n❌ Failed tests:")
            for result in self.test_results:
                if not result['success']:
                    print(f"  - {result['test']}: {result['details']}")

        return self.tests_passed == self.tests_run


def main():
    tester = SymposiumAPITester(sys.argv[1] if len(sys.argv) > 1 else None)
    success = tester.run_all_tests()
    return 0 if success else 1


if __name__ == "__main__":
    sys.exit(main())
