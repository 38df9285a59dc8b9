"""
Tests for the admin endpoints
"""

from datetime import datetime, timedelta

import pytest

from villacare import config
from villacare.auth import read_session_token
from villacare.models import AuditLog, Cleaner, Feedback, Review, Team, TeamJoinRequest, User


@pytest.fixture
def admin(factory):
    return factory.admin()


@pytest.fixture
def as_admin(login, admin):
    return login(admin)


def review(db, booking, rating, approved=False):
    row = Review(
        booking_id=booking.id,
        cleaner_id=booking.cleaner_id,
        owner_id=booking.owner_id,
        rating=rating,
        approved=approved,
    )
    db.add(row)
    db.commit()
    return row


class TestAdminAccess:
    def test_anonymous(self, client):
        assert client.get("/api/admin/stats").status_code == 401

    @pytest.mark.parametrize("role", ["OWNER", "CLEANER"])
    def test_non_admin(self, login, factory, role):
        client = login(factory.user(role=role))
        response = client.get("/api/admin/stats")
        assert response.status_code == 403
        assert response.json() == {"error": "Admin access required"}


class TestStats:
    def test_aggregates(self, as_admin, db, factory):
        active = factory.cleaner()
        factory.cleaner(status="PENDING")
        factory.cleaner(status="SUSPENDED")
        last_month = datetime.utcnow() - timedelta(days=40)
        done = factory.booking(active, status="COMPLETED", price=100)
        factory.booking(active, status="COMPLETED", price=50, created_at=last_month)
        factory.booking(active, status="PENDING", price=999)
        review(db, done, 4, approved=True)
        review(db, factory.booking(active, status="COMPLETED", price=10, created_at=last_month), 5, approved=True)
        review(db, factory.booking(active, status="COMPLETED", price=0.5), 1)

        stats = as_admin.get("/api/admin/stats").json()["stats"]

        assert stats["totalCleaners"] == 3
        assert stats["activeCleaners"] == 1
        assert stats["pendingApplications"] == 1
        assert stats["suspendedCleaners"] == 1
        assert stats["totalBookings"] == 5
        assert stats["totalRevenue"] == 160.5
        assert stats["thisMonthBookings"] == 3
        assert stats["thisMonthRevenue"] == 100.5
        assert stats["totalReviews"] == 2
        assert stats["averageRating"] == 4.5

    def test_empty_platform(self, as_admin):
        stats = as_admin.get("/api/admin/stats").json()["stats"]
        assert stats["totalCleaners"] == 0
        assert stats["totalRevenue"] == 0
        assert stats["averageRating"] == 0


class TestCleanerModeration:
    def test_list(self, as_admin, factory):
        factory.cleaner(name="Maria Lopez", status="PENDING")

        [cleaner] = as_admin.get("/api/admin/cleaners").json()["cleaners"]

        assert cleaner["name"] == "Maria Lopez"
        assert cleaner["status"] == "pending"

    def test_approve_is_audited(self, as_admin, db, factory, admin):
        cleaner = factory.cleaner(status="PENDING")

        response = as_admin.patch(f"/api/admin/cleaners/{cleaner.id}", json={"action": "approve"})

        assert response.json() == {"success": True, "cleaner": {"id": cleaner.id, "status": "active"}}
        [entry] = db.query(AuditLog).filter_by(action="APPROVE_CLEANER").all()
        assert entry.user_id == admin.id
        assert entry.details == {"from": "PENDING", "to": "ACTIVE"}

    def test_suspend(self, as_admin, db, factory):
        cleaner = factory.cleaner()
        as_admin.patch(f"/api/admin/cleaners/{cleaner.id}", json={"action": "suspend"})
        db.refresh(cleaner)
        assert cleaner.status == "SUSPENDED"

    def test_team_leader_toggle(self, as_admin, db, factory):
        cleaner = factory.cleaner()

        body = as_admin.patch(f"/api/admin/cleaners/{cleaner.id}", json={"action": "makeTeamLeader"}).json()

        assert body["cleaner"]["teamLeader"] is True
        assert db.query(AuditLog).filter_by(action="SET_TEAM_LEADER").count() == 1

    def test_edit_contact_details(self, as_admin, db, factory):
        cleaner = factory.cleaner()

        body = as_admin.patch(
            f"/api/admin/cleaners/{cleaner.id}",
            json={"action": "edit", "name": " Maria ", "phone": "612 345 678"},
        ).json()

        assert body["cleaner"]["name"] == "Maria"
        assert body["cleaner"]["phone"] == "+34612345678"

    def test_edit_needs_a_field(self, as_admin, factory):
        cleaner = factory.cleaner()
        response = as_admin.patch(f"/api/admin/cleaners/{cleaner.id}", json={"action": "edit", "name": "  "})
        assert response.status_code == 400
        assert response.json() == {"error": "No valid fields to update"}

    def test_unknown_action(self, as_admin, factory):
        cleaner = factory.cleaner()
        response = as_admin.patch(f"/api/admin/cleaners/{cleaner.id}", json={"action": "promote"})
        assert response.status_code == 400

    def test_unknown_cleaner(self, as_admin):
        response = as_admin.patch("/api/admin/cleaners/missing", json={"action": "approve"})
        assert response.status_code == 404

    def test_delete_refused_with_active_bookings(self, as_admin, factory):
        cleaner = factory.cleaner()
        factory.booking(cleaner, status="CONFIRMED")

        response = as_admin.delete(f"/api/admin/cleaners/{cleaner.id}")

        assert response.status_code == 400
        assert response.json() == {"error": "Cannot delete cleaner with active bookings"}

    def test_delete_team_leader_detaches_members(self, as_admin, db, factory):
        leader = factory.cleaner()
        member = factory.cleaner()
        factory.team(leader, members=[member])
        user_id = leader.user_id

        response = as_admin.delete(f"/api/admin/cleaners/{leader.id}")

        assert response.status_code == 200
        db.expire_all()
        assert db.get(Cleaner, leader.id) is None
        assert db.get(User, user_id) is None
        assert db.query(Team).count() == 0
        assert db.get(Cleaner, member.id).team_id is None
        assert db.query(AuditLog).filter_by(action="DELETE_CLEANER", target=leader.id).count() == 1

    def test_delete_with_booking_history_is_a_conflict(self, as_admin, db, factory):
        cleaner = factory.cleaner()
        factory.booking(cleaner, status="COMPLETED")

        response = as_admin.delete(f"/api/admin/cleaners/{cleaner.id}")

        assert response.status_code == 400
        assert response.json() == {"error": "Record conflicts with existing data"}
        # The failed delete was rolled back and the session is usable again
        db.expire_all()
        assert db.get(Cleaner, cleaner.id) is not None
        assert db.query(AuditLog).filter_by(action="DELETE_CLEANER").count() == 0

    def test_delete_removes_join_requests(self, as_admin, db, factory):
        leader = factory.cleaner()
        team = factory.team(leader)
        applicant = factory.cleaner()
        db.add(TeamJoinRequest(team_id=team.id, cleaner_id=applicant.id))
        db.commit()

        response = as_admin.delete(f"/api/admin/cleaners/{applicant.id}")

        assert response.status_code == 200
        assert db.query(TeamJoinRequest).count() == 0


class TestBookingsAndReviews:
    def test_bookings_filtered_by_status(self, as_admin, factory):
        cleaner = factory.cleaner()
        factory.booking(cleaner, status="PENDING")
        completed = factory.booking(cleaner, status="COMPLETED")

        bookings = as_admin.get("/api/admin/bookings", params={"status": "COMPLETED"}).json()["bookings"]

        assert [b["id"] for b in bookings] == [completed.id]

    def test_approving_reviews_updates_rating(self, as_admin, db, factory):
        cleaner = factory.cleaner()
        first = review(db, factory.booking(cleaner, status="COMPLETED"), 4)
        second = review(db, factory.booking(cleaner, status="COMPLETED"), 3)

        as_admin.patch(f"/api/admin/reviews/{first.id}", json={"action": "approve"})
        body = as_admin.patch(f"/api/admin/reviews/{second.id}", json={"action": "feature"}).json()

        assert body["review"] == {"id": second.id, "approved": True, "featured": True}
        db.refresh(cleaner)
        assert cleaner.review_count == 2
        assert cleaner.rating == 3.5

    def test_rejecting_a_review_deletes_it(self, as_admin, db, factory):
        cleaner = factory.cleaner()
        kept = review(db, factory.booking(cleaner, status="COMPLETED"), 5, approved=True)
        dropped = review(db, factory.booking(cleaner, status="COMPLETED"), 1, approved=True)
        dropped_id = dropped.id

        body = as_admin.patch(f"/api/admin/reviews/{dropped_id}", json={"action": "reject"}).json()

        assert body["review"] == {"id": dropped_id, "deleted": True}
        db.expire_all()
        assert [r.id for r in db.query(Review).all()] == [kept.id]
        assert db.get(Cleaner, cleaner.id).rating == 5.0
        assert db.query(AuditLog).filter_by(action="DELETE_REVIEW").count() == 1


class TestSettings:
    def test_defaults(self, as_admin):
        settings = as_admin.get("/api/admin/settings").json()["settings"]
        assert settings["teamLeaderHoursRequired"] == 50
        assert settings["teamLeaderRatingRequired"] == 5.0

    def test_update(self, as_admin, db):
        body = as_admin.patch("/api/admin/settings", json={"teamLeaderHoursRequired": 20}).json()

        assert body["settings"]["teamLeaderHoursRequired"] == 20
        assert body["settings"]["teamLeaderRatingRequired"] == 5.0
        assert db.query(AuditLog).filter_by(action="UPDATE_SETTINGS").one().details == {"teamLeaderHoursRequired": 20}

    @pytest.mark.parametrize(
        "payload",
        [{"teamLeaderHoursRequired": 0}, {"teamLeaderHoursRequired": 1001}, {"teamLeaderRatingRequired": 5.5}],
    )
    def test_out_of_range(self, as_admin, payload):
        assert as_admin.patch("/api/admin/settings", json=payload).status_code == 400


class TestAuditLog:
    def test_filters_and_paginates(self, as_admin, factory):
        cleaner = factory.cleaner(status="PENDING")
        as_admin.patch(f"/api/admin/cleaners/{cleaner.id}", json={"action": "approve"})
        as_admin.patch(f"/api/admin/cleaners/{cleaner.id}", json={"action": "suspend"})
        as_admin.patch(f"/api/admin/cleaners/{cleaner.id}", json={"action": "activate"})

        page = as_admin.get("/api/admin/audit", params={"targetType": "CLEANER", "limit": 2}).json()
        only = as_admin.get("/api/admin/audit", params={"action": "SUSPEND_CLEANER"}).json()

        assert page["pagination"]["total"] == 3
        assert len(page["logs"]) == 2
        assert [log["action"] for log in only["logs"]] == ["SUSPEND_CLEANER"]


class TestFeedback:
    def test_anyone_can_submit(self, client, db):
        response = client.post("/api/feedback", json={"category": "idea", "message": "Add Spanish"})

        assert response.status_code == 200
        feedback = db.query(Feedback).one()
        assert feedback.status == "NEW"
        assert feedback.user_id is None

    def test_signed_in_feedback_keeps_user(self, login, db, factory):
        user = factory.user()
        login(user).post("/api/feedback", json={"message": "Great"})
        assert db.query(Feedback).one().user_id == user.id

    def test_admin_triage(self, as_admin, db):
        as_admin.post("/api/feedback", json={"message": "Broken link"})
        feedback = db.query(Feedback).one()

        body = as_admin.patch(f"/api/admin/feedback/{feedback.id}", json={"status": "resolved"}).json()
        listed = as_admin.get("/api/admin/feedback", params={"status": "RESOLVED"}).json()["feedback"]

        assert body["feedback"]["status"] == "resolved"
        assert [f["id"] for f in listed] == [feedback.id]

    def test_invalid_status(self, as_admin, db):
        as_admin.post("/api/feedback", json={"message": "Hi"})
        feedback = db.query(Feedback).one()
        response = as_admin.patch(f"/api/admin/feedback/{feedback.id}", json={"status": "archived"})
        assert response.status_code == 400


class TestImpersonation:
    def _use_cookie_from(self, client, response):
        token = response.cookies[config.SESSION_COOKIE_NAME]
        client.cookies.clear()
        client.cookies.set(config.SESSION_COOKIE_NAME, token)
        return read_session_token(token)

    def test_start_and_stop(self, as_admin, db, factory, admin):
        cleaner = factory.cleaner(name="Maria Lopez")

        started = as_admin.post("/api/admin/impersonate", json={"cleanerId": cleaner.id})

        assert started.json()["message"] == "Now viewing as Maria Lopez"
        session = self._use_cookie_from(as_admin, started)
        assert session["uid"] == admin.id
        assert session["impersonating"] == cleaner.user_id
        # Cleaner-only routes now resolve to the impersonated cleaner
        assert as_admin.get("/api/dashboard/cleaner").json()["cleaner"]["id"] == cleaner.id
        # Admin routes do not, since the effective user is the cleaner
        assert as_admin.get("/api/admin/stats").status_code == 403

        stopped = as_admin.delete("/api/admin/impersonate")

        assert stopped.status_code == 200
        session = self._use_cookie_from(as_admin, stopped)
        assert session == {"uid": admin.id}
        actions = [a for (a,) in db.query(AuditLog.action).order_by(AuditLog.created_at).all()]
        assert actions == ["IMPERSONATE_START", "IMPERSONATE_STOP"]

    def test_stop_when_not_impersonating(self, as_admin):
        response = as_admin.delete("/api/admin/impersonate")
        assert response.status_code == 400
        assert response.json() == {"error": "Not currently impersonating"}

    def test_unknown_cleaner(self, as_admin):
        assert as_admin.post("/api/admin/impersonate", json={"cleanerId": "nope"}).status_code == 404

    def test_requires_admin_session(self, login, factory):
        client = login(factory.user(role="OWNER"))
        assert client.post("/api/admin/impersonate", json={"cleanerId": "x"}).status_code == 403
