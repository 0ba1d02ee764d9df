import time


def _submit(client, **body):
    return client.post("/api/forms/submit", json=body)


def test_quote_submission_derives_name(client, user_headers):
    resp = _submit(client, firstName="A", lastName="B", email="a@b.com", formType="quote")

    assert resp.status_code == 201
    data = resp.json()
    assert data["success"] is True
    submission_id = data["submissionId"]

    fetched = client.get(f"/api/forms/submissions/{submission_id}", headers=user_headers)
    assert fetched.status_code == 200
    submission = fetched.json()["submission"]
    assert submission["name"] == "A B"
    assert submission["firstName"] == "A"
    assert submission["lastName"] == "B"
    assert submission["formType"] == "quote"
    assert submission["createdAt"]


def test_contact_submission_keeps_given_name_and_lowercases_email(client, user_headers):
    resp = _submit(
        client,
        name="  Ravi Kumar ",
        email="Ravi@Kumar.com",
        subject="Audit",
        message="Need help with GST filing",
        formType="contact",
    )
    submission_id = resp.json()["submissionId"]

    submission = client.get(f"/api/forms/submissions/{submission_id}", headers=user_headers).json()["submission"]
    assert submission["name"] == "Ravi Kumar"
    assert submission["email"] == "ravi@kumar.com"
    assert submission["subject"] == "Audit"
    assert submission["mobile"] is None


def test_first_name_alone_is_enough(client, user_headers):
    resp = _submit(client, firstName="Solo", email="solo@b.com")

    assert resp.status_code == 201
    submission = client.get(f"/api/forms/submissions/{resp.json()['submissionId']}", headers=user_headers).json()
    assert submission["submission"]["name"] == "Solo"
    assert submission["submission"]["formType"] == "other"


def test_submission_requires_name_and_email(client):
    no_name = _submit(client, email="a@b.com")
    no_email = _submit(client, name="A")

    assert no_name.status_code == 400
    assert no_name.json() == {"success": False, "message": "Name is required"}
    assert no_email.status_code == 400
    assert no_email.json() == {"success": False, "message": "Email is required"}


def test_last_name_alone_is_not_a_name(client, user_headers):
    resp = _submit(client, lastName="B", email="a@b.com")

    assert resp.status_code == 400
    assert resp.json() == {"success": False, "message": "Name is required"}
    assert client.get("/api/forms/submissions", headers=user_headers).json()["count"] == 0


def test_unknown_form_type_is_rejected(client):
    assert _submit(client, name="A", email="a@b.com", formType="newsletter").status_code == 400


def test_submission_sends_thank_you_and_admin_summary(client, settings, notifier, sent_emails):
    _submit(client, name="A B", email="a@b.com", mobile="9999", city="Pune", service="Tax", formType="quote")
    notifier.join()

    kinds = {job.kind: job for job in sent_emails}
    assert set(kinds) == {"thank_you", "admin_submission"}
    assert kinds["thank_you"].to == "a@b.com"

    summary = kinds["admin_submission"]
    assert summary.to == settings.ADMIN_EMAIL
    assert summary.subject == "New quote Form Submission"
    for fragment in ("A B", "a@b.com", "9999", "Pune", "Tax", "quote"):
        assert fragment in summary.html
    assert "Subject:" not in summary.html


def test_admin_summary_escapes_user_input(client, notifier, sent_emails):
    _submit(client, name="<script>x</script>", email="a@b.com")
    notifier.join()

    summary = next(job for job in sent_emails if job.kind == "admin_submission")
    assert "<script>" not in summary.html
    assert "&lt;script&gt;" in summary.html


def test_no_admin_summary_without_admin_address(settings_factory, sent_emails):
    from fastapi.testclient import TestClient

    from cacs_api.main import create_app
    from cacs_api.utils.notifier import Notifier

    notifier = Notifier(sent_emails.append, retry_delay=0)
    app = create_app(settings_factory(ADMIN_EMAIL=None), notifier=notifier)
    with TestClient(app) as client:
        assert _submit(client, name="A", email="a@b.com").status_code == 201
        notifier.join()

    assert [job.kind for job in sent_emails] == ["thank_you"]


def test_submission_survives_mail_failure(settings):
    from fastapi.testclient import TestClient

    from cacs_api.main import create_app
    from cacs_api.utils.notifier import Notifier

    attempts = []

    def broken_sender(job):
        attempts.append(job.kind)
        raise OSError("connection refused")

    notifier = Notifier(broken_sender, max_retries=2, retry_delay=0)
    with TestClient(create_app(settings, notifier=notifier)) as client:
        resp = _submit(client, name="A", email="a@b.com")
        notifier.join()

    assert resp.status_code == 201
    assert resp.json()["submissionId"]
    assert sorted(attempts) == ["admin_submission"] * 2 + ["thank_you"] * 2


def test_submission_endpoints_require_token(client):
    submission_id = _submit(client, name="A", email="a@b.com").json()["submissionId"]

    assert client.get("/api/forms/submissions").status_code == 401
    assert client.get(f"/api/forms/submissions/{submission_id}").status_code == 401
    assert client.put(f"/api/forms/submissions/{submission_id}", json={"city": "X"}).status_code == 401
    assert client.delete(f"/api/forms/submissions/{submission_id}").status_code == 401


def test_list_is_newest_first(client, user_headers):
    ids = []
    for i in range(3):
        ids.append(_submit(client, name=f"Person {i}", email=f"p{i}@b.com").json()["submissionId"])
        time.sleep(0.01)

    resp = client.get("/api/forms/submissions", headers=user_headers)

    assert resp.status_code == 200
    data = resp.json()
    assert data["success"] is True
    assert data["count"] == 3
    assert [s["id"] for s in data["submissions"]] == list(reversed(ids))


def test_update_submission(client, user_headers):
    submission_id = _submit(client, name="A", email="a@b.com").json()["submissionId"]

    resp = client.put(
        f"/api/forms/submissions/{submission_id}",
        headers=user_headers,
        json={"city": "Mumbai", "formType": "contact", "email": "NEW@b.com", "name": None},
    )

    assert resp.status_code == 200
    submission = resp.json()["submission"]
    assert submission["city"] == "Mumbai"
    assert submission["formType"] == "contact"
    assert submission["email"] == "new@b.com"
    assert submission["name"] == "A"


def test_update_rejects_blank_name_and_bad_form_type(client, user_headers):
    submission_id = _submit(client, name="A", email="a@b.com").json()["submissionId"]
    url = f"/api/forms/submissions/{submission_id}"

    assert client.put(url, headers=user_headers, json={"name": "   "}).status_code == 400
    assert client.put(url, headers=user_headers, json={"formType": "spam"}).status_code == 400
    assert client.put(url, headers=user_headers, json={"email": ""}).status_code == 400


def test_delete_submission(client, user_headers):
    submission_id = _submit(client, name="A", email="a@b.com").json()["submissionId"]
    url = f"/api/forms/submissions/{submission_id}"

    resp = client.delete(url, headers=user_headers)

    assert resp.status_code == 200
    assert resp.json() == {"success": True, "message": "Submission removed"}
    assert client.get(url, headers=user_headers).status_code == 404
    assert client.delete(url, headers=user_headers).status_code == 404


def test_unknown_submission_is_404(client, user_headers):
    for submission_id in ("00000000-0000-0000-0000-000000000000", "garbage"):
        resp = client.get(f"/api/forms/submissions/{submission_id}", headers=user_headers)
        assert resp.status_code == 404
        assert resp.json()["message"] == "Submission not found"
    assert client.put("/api/forms/submissions/garbage", headers=user_headers, json={"city": "X"}).status_code == 404
