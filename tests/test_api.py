"""
End-to-end tests through the HTTP surface.

Requests run against the real application with the database session and
the connection hub swapped for test instances.
"""

from datetime import timedelta
from uuid import uuid4

import pytest

from dashboard_feedback.core.config import get_settings
from dashboard_feedback.core.security import create_access_token
from dashboard_feedback.models import IssueStatus
from dashboard_feedback.services.issues import ADMIN_CANNOT_COMPLETE

API = get_settings().api_prefix
PASSWORD = "correct-horse"


def types_of(notifications: list[dict]) -> list[str]:
    return [n["type"] for n in notifications]


# =============================================================================
# TEST: AUTHENTICATION
# =============================================================================


class TestAuthentication:

    async def test_login_and_me(self, client, business_user):
        response = await client.post(
            f"{API}/auth/login",
            json={"email": business_user.email, "password": PASSWORD},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["token_type"] == "bearer"
        assert body["user"]["role"] == "business"

        me = await client.get(
            f"{API}/auth/me",
            headers={"Authorization": f"Bearer {body['access_token']}"},
        )
        assert me.status_code == 200
        assert me.json()["id"] == str(business_user.id)

    async def test_login_wrong_password(self, client, business_user):
        response = await client.post(
            f"{API}/auth/login",
            json={"email": business_user.email, "password": "wrong"},
        )
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid email or password"

    async def test_missing_credentials(self, client):
        response = await client.get(f"{API}/issues")
        assert response.status_code == 401
        assert response.json()["detail"] == "Not authenticated"

    @pytest.mark.parametrize(
        "token",
        [
            "not-a-jwt",
            create_access_token(uuid4(), expires_delta=timedelta(minutes=-5)),
        ],
    )
    async def test_invalid_or_expired_token(self, client, token):
        response = await client.get(
            f"{API}/issues", headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid or expired token"

    async def test_token_for_unknown_user(self, client):
        token = create_access_token(uuid4())
        response = await client.get(
            f"{API}/auth/me", headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 401
        assert response.json()["detail"] == "User not found"


# =============================================================================
# TEST: ROLE GATES AND ERROR BODIES
# =============================================================================


class TestRoleGates:

    async def test_wrong_role_rejected_before_business_logic(
        self, client, auth, data_scientist, business_user, dashboard
    ):
        cases = [
            ("post", f"{API}/issues", data_scientist, {"dashboard_id": str(dashboard.id)}),
            ("get", f"{API}/issues/team/dashboard", business_user, None),
            ("get", f"{API}/issues/my-threads", data_scientist, None),
            ("get", f"{API}/admin/stats", data_scientist, None),
            ("get", f"{API}/admin-requests", business_user, None),
        ]
        for method, url, user, body in cases:
            kwargs = {"headers": auth(user)}
            if body is not None:
                kwargs["json"] = body
            response = await getattr(client, method)(url, **kwargs)
            assert response.status_code == 403, url
            assert response.json()["detail"] == "Insufficient permissions"

    async def test_workflow_error_body(self, client, auth, factory, admin, business_user, dashboard):
        issue = await factory.issue(business_user, dashboard, status=IssueStatus.IN_PROGRESS)

        response = await client.patch(
            f"{API}/issues/{issue.id}/status",
            json={"status": "complete"},
            headers=auth(admin),
        )

        assert response.status_code == 403
        assert response.json() == {
            "error": "Forbidden",
            "message": ADMIN_CANNOT_COMPLETE,
            "details": None,
        }

    async def test_not_found_and_validation(self, client, auth, business_user, dashboard):
        missing = await client.get(f"{API}/issues/{uuid4()}", headers=auth(business_user))
        assert missing.status_code == 404
        assert missing.json()["message"] == "Issue not found"

        invalid = await client.post(
            f"{API}/issues",
            json={"dashboard_id": str(dashboard.id)},
            headers=auth(business_user),
        )
        assert invalid.status_code == 400
        assert invalid.json()["error"] == "ValidationError"

    async def test_unknown_status_value_is_unprocessable(
        self, client, auth, factory, admin, business_user, dashboard
    ):
        issue = await factory.issue(business_user, dashboard)

        response = await client.patch(
            f"{API}/issues/{issue.id}/status",
            json={"status": "archived"},
            headers=auth(admin),
        )
        assert response.status_code == 422


# =============================================================================
# TEST: THREAD LIFECYCLE
# =============================================================================


class TestThreadLifecycle:

    async def test_create_reply_complete(
        self, client, auth, hub, business_user, data_scientist, teammate, dashboard, team
    ):
        """Create, first reply from the team, then completion."""
        submitter_socket = hub.join(business_user.id)

        created = await client.post(
            f"{API}/issues",
            json={
                "dashboard_id": str(dashboard.id),
                "subject": "Forecast line stops early",
                "description": "The forecast ends one month early",
            },
            headers=auth(business_user),
        )
        assert created.status_code == 201
        issue = created.json()["issue"]
        assert issue["status"] == "pending"
        assert issue["assigned_team_id"] == str(team.id)
        assert issue["dashboard_name"] == "Weekly Revenue"

        for member in (data_scientist, teammate):
            feed = await client.get(f"{API}/notifications", headers=auth(member))
            assert types_of(feed.json()["notifications"]) == ["new_issue"]

        reply = await client.post(
            f"{API}/comments",
            json={"issue_id": issue["id"], "comment_text": "Re-running the job"},
            headers=auth(data_scientist),
        )
        assert reply.status_code == 201
        assert reply.json()["comment"]["user_role"] == "data_science"

        started = await client.get(f"{API}/issues/{issue['id']}", headers=auth(business_user))
        assert started.json()["issue"]["status"] == "in_progress"

        feed = await client.get(f"{API}/notifications", headers=auth(business_user))
        assert types_of(feed.json()["notifications"]).count("status_change") == 1

        completed = await client.patch(
            f"{API}/issues/{issue['id']}/status",
            json={"status": "complete"},
            headers=auth(data_scientist),
        )
        assert completed.status_code == 200
        assert completed.json()["issue"]["status"] == "complete"

        feed = await client.get(f"{API}/notifications", headers=auth(business_user))
        assert types_of(feed.json()["notifications"]).count("status_change") == 2

        pushed = []
        while not submitter_socket.queue.empty():
            pushed.append(submitter_socket.queue.get_nowait()["type"])
        assert pushed == ["status-update", "new-reply", "status-update"]

    async def test_seconding(
        self, client, auth, factory, business_user, other_business_user, dashboard
    ):
        theirs = await factory.issue(other_business_user, dashboard)
        mine = await factory.issue(business_user, dashboard)

        response = await client.post(
            f"{API}/issues/{theirs.id}/second", headers=auth(business_user)
        )
        assert response.status_code == 200
        assert response.json()["second_count"] == 1
        assert response.json()["message"] == "Thread seconded successfully"

        view = await client.get(f"{API}/issues/{theirs.id}", headers=auth(business_user))
        assert view.json()["issue"]["is_seconded"] is True
        assert view.json()["issue"]["second_count"] == 1

        again = await client.post(
            f"{API}/issues/{theirs.id}/second", headers=auth(business_user)
        )
        assert again.status_code == 400
        assert again.json()["error"] == "Conflict"

        own = await client.post(f"{API}/issues/{mine.id}/second", headers=auth(business_user))
        assert own.status_code == 403
        assert own.json()["message"] == "You cannot second your own thread"

        threads = await client.get(f"{API}/issues/my-threads", headers=auth(business_user))
        assert {i["id"] for i in threads.json()["issues"]} == {str(theirs.id), str(mine.id)}

    async def test_business_reply_to_foreign_thread(
        self, client, auth, factory, business_user, other_business_user, dashboard
    ):
        issue = await factory.issue(other_business_user, dashboard)

        response = await client.post(
            f"{API}/comments",
            json={"issue_id": str(issue.id), "comment_text": "Me too"},
            headers=auth(business_user),
        )
        assert response.status_code == 403
        assert response.json()["message"] == "You can only reply to your own threads"

    async def test_comment_edit_and_delete(
        self, client, auth, factory, business_user, dashboard
    ):
        issue = await factory.issue(business_user, dashboard)
        created = await client.post(
            f"{API}/comments",
            json={"issue_id": str(issue.id), "comment_text": "Frist"},
            headers=auth(business_user),
        )
        comment_id = created.json()["comment"]["id"]

        edited = await client.put(
            f"{API}/comments/{comment_id}",
            json={"comment_text": "First"},
            headers=auth(business_user),
        )
        assert edited.json()["comment"]["comment_text"] == "First"

        listed = await client.get(f"{API}/comments/issue/{issue.id}", headers=auth(business_user))
        assert [c["comment_text"] for c in listed.json()["comments"]] == ["First"]

        deleted = await client.delete(f"{API}/comments/{comment_id}", headers=auth(business_user))
        assert deleted.json() == {"message": "Comment deleted successfully"}

    async def test_delete_guard(self, client, auth, factory, business_user, dashboard):
        busy = await factory.issue(business_user, dashboard, status=IssueStatus.IN_PROGRESS)
        done = await factory.issue(business_user, dashboard, status=IssueStatus.COMPLETE)

        refused = await client.delete(f"{API}/issues/{busy.id}", headers=auth(business_user))
        assert refused.status_code == 400
        assert refused.json()["error"] == "InvalidState"

        removed = await client.delete(f"{API}/issues/{done.id}", headers=auth(business_user))
        assert removed.json() == {"message": "Thread deleted successfully"}

        gone = await client.get(f"{API}/issues/{done.id}", headers=auth(business_user))
        assert gone.status_code == 404

    async def test_listing_filters(
        self, client, auth, factory, business_user, dashboard, unassigned_dashboard
    ):
        await factory.issue(business_user, dashboard)
        orphan = await factory.issue(business_user, unassigned_dashboard)

        response = await client.get(
            f"{API}/issues",
            params={"assigned_team_id": "unassigned"},
            headers=auth(business_user),
        )
        assert [i["id"] for i in response.json()["issues"]] == [str(orphan.id)]

        bad = await client.get(
            f"{API}/issues",
            params={"assigned_team_id": "banana"},
            headers=auth(business_user),
        )
        assert bad.status_code == 400

    async def test_team_dashboard(
        self, client, auth, factory, business_user, data_scientist, dashboard
    ):
        await factory.issue(business_user, dashboard)

        response = await client.get(
            f"{API}/issues/team/dashboard",
            params={"team_filter": "my_team"},
            headers=auth(data_scientist),
        )
        assert response.status_code == 200
        body = response.json()
        assert body["summary"] == {
            "pending": 1,
            "in_progress": 0,
            "critical": 0,
            "total_dashboards": 1,
        }
        assert body["issues"][0]["is_my_team"] is True

        critical = await client.get(
            f"{API}/issues/team/dashboard",
            params={"priority": "critical"},
            headers=auth(data_scientist),
        )
        assert critical.json()["issues"] == []


# =============================================================================
# TEST: ADMIN
# =============================================================================


class TestAdmin:

    async def test_assign_team_starts_work(
        self, client, auth, factory, admin, business_user, unassigned_dashboard, other_team
    ):
        issue = await factory.issue(business_user, unassigned_dashboard)

        response = await client.post(
            f"{API}/admin/issues/{issue.id}/assign-team",
            json={"team_id": str(other_team.id)},
            headers=auth(admin),
        )
        assert response.status_code == 200
        assert response.json()["issue"]["status"] == "in_progress"
        assert response.json()["issue"]["assigned_team_name"] == "Growth"

        feed = await client.get(f"{API}/notifications", headers=auth(business_user))
        assert types_of(feed.json()["notifications"]) == ["status_change"]

    async def test_assign_user(
        self, client, auth, factory, admin, business_user, unassigned_dashboard, outsider
    ):
        issue = await factory.issue(business_user, unassigned_dashboard)

        response = await client.post(
            f"{API}/admin/issues/{issue.id}/assign-user",
            json={"user_id": str(outsider.id)},
            headers=auth(admin),
        )
        body = response.json()["issue"]
        assert body["assigned_user_name"] == "Greg Okafor"
        assert body["assigned_team_id"] == str(outsider.team_id)

    async def test_stats_and_team_delete(
        self, client, auth, factory, admin, business_user, data_scientist, team, dashboard
    ):
        await factory.issue(business_user, dashboard)

        stats = await client.get(f"{API}/admin/stats", headers=auth(admin))
        assert stats.json()["stats"]["pending_issues"] == 1
        assert stats.json()["stats"]["total_teams"] == 1

        deleted = await client.delete(f"{API}/admin/teams/{team.id}", headers=auth(admin))
        assert deleted.json() == {"message": "Team deleted successfully"}

        me = await client.get(f"{API}/auth/me", headers=auth(data_scientist))
        assert me.json()["team_id"] is None

        missing = await client.delete(f"{API}/admin/teams/{team.id}", headers=auth(admin))
        assert missing.status_code == 404


# =============================================================================
# TEST: ADMIN REQUESTS
# =============================================================================


class TestAdminRequests:

    async def create(self, client, auth, user, **overrides):
        body = {
            "request_type": "new_dashboard",
            "subject": "Churn dashboard",
            "description": "We need a churn dashboard",
        }
        body.update(overrides)
        return await client.post(f"{API}/admin-requests", json=body, headers=auth(user))

    async def test_request_review_cycle(self, client, auth, admin, data_scientist, teammate):
        created = await self.create(client, auth, data_scientist)
        assert created.status_code == 201
        request_id = created.json()["request"]["id"]

        feed = await client.get(f"{API}/notifications", headers=auth(admin))
        assert types_of(feed.json()["notifications"]) == ["admin_request"]

        answered = await client.patch(
            f"{API}/admin-requests/{request_id}/status",
            json={"status": "in_progress", "admin_response": "Scheduled"},
            headers=auth(admin),
        )
        assert answered.json()["request"]["admin_response"] == "Scheduled"

        resolved = await client.patch(
            f"{API}/admin-requests/{request_id}/status",
            json={"status": "resolved"},
            headers=auth(admin),
        )
        assert resolved.json()["request"]["status"] == "resolved"
        assert resolved.json()["request"]["admin_response"] == "Scheduled"
        assert resolved.json()["request"]["resolved_by_name"] == "Alice Admin"

        cleared = await client.patch(
            f"{API}/admin-requests/{request_id}/status",
            json={"status": "resolved", "admin_response": None},
            headers=auth(admin),
        )
        assert cleared.json()["request"]["admin_response"] is None

        denied = await client.get(
            f"{API}/admin-requests/{request_id}", headers=auth(teammate)
        )
        assert denied.status_code == 403
        assert denied.json()["message"] == "Access denied"

        withdraw = await client.delete(
            f"{API}/admin-requests/{request_id}", headers=auth(data_scientist)
        )
        assert withdraw.status_code == 400
        assert withdraw.json()["message"] == "You can only delete pending requests"

    async def test_invalid_request_type(self, client, auth, data_scientist):
        response = await self.create(client, auth, data_scientist, request_type="pizza")
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid request type"

    async def test_unknown_dashboard_is_not_found(self, client, auth, data_scientist):
        response = await self.create(
            client, auth, data_scientist, dashboard_id=str(uuid4())
        )
        assert response.status_code == 404
        assert response.json()["message"] == "Dashboard not found"

    @pytest.mark.parametrize(
        "path",
        ["/admin-requests", "/admin-requests/{request_id}", "/comments/issue/{issue_id}"],
    )
    def test_read_routes_skip_notification_service(self, path):
        from dashboard_feedback.core.dependencies import get_notification_service
        from dashboard_feedback.main import app

        def dependency_calls(dependant):
            for sub in dependant.dependencies:
                yield sub.call
                yield from dependency_calls(sub)

        route = next(
            r for r in app.routes
            if getattr(r, "path", None) == f"{API}{path}" and "GET" in r.methods
        )
        assert get_notification_service not in set(dependency_calls(route.dependant))

    async def test_list_scoped_to_submitter(self, client, auth, admin, data_scientist, teammate):
        await self.create(client, auth, data_scientist)
        await self.create(client, auth, teammate, request_type="other")

        own = await client.get(f"{API}/admin-requests", headers=auth(teammate))
        assert len(own.json()["requests"]) == 1

        everything = await client.get(f"{API}/admin-requests", headers=auth(admin))
        assert len(everything.json()["requests"]) == 2

        filtered = await client.get(
            f"{API}/admin-requests",
            params={"request_type": "other"},
            headers=auth(admin),
        )
        assert [r["request_type"] for r in filtered.json()["requests"]] == ["other"]


# =============================================================================
# TEST: NOTIFICATION FEED
# =============================================================================


class TestNotificationFeed:

    async def test_read_state(
        self, client, auth, factory, admin, business_user, other_business_user, dashboard
    ):
        for _ in range(2):
            issue = await factory.issue(business_user, dashboard)
            await client.patch(
                f"{API}/issues/{issue.id}/status",
                json={"status": "in_progress"},
                headers=auth(admin),
            )

        count = await client.get(f"{API}/notifications/unread-count", headers=auth(business_user))
        assert count.json() == {"count": 2}

        feed = await client.get(f"{API}/notifications", headers=auth(business_user))
        first = feed.json()["notifications"][0]
        assert first["dashboard_name"] == "Weekly Revenue"
        assert first["issue_status"] == "in_progress"

        foreign = await client.patch(
            f"{API}/notifications/{first['id']}/read", headers=auth(other_business_user)
        )
        assert foreign.status_code == 404

        marked = await client.patch(
            f"{API}/notifications/{first['id']}/read", headers=auth(business_user)
        )
        assert marked.json()["notification"]["is_read"] is True

        unread = await client.get(
            f"{API}/notifications", params={"is_read": "false"}, headers=auth(business_user)
        )
        assert len(unread.json()["notifications"]) == 1

        await client.patch(f"{API}/notifications/read-all", headers=auth(business_user))
        count = await client.get(f"{API}/notifications/unread-count", headers=auth(business_user))
        assert count.json() == {"count": 0}
