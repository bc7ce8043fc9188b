from models import Experience, ExperienceStatus


def _submit(client, company="Acme", pdf=b"%PDF-1.4 story", **overrides):
    data = {
        "name": "Asha",
        "email": "Asha@Example.com",
        "type": "Placement",
        "year": "2025",
        "company": company,
        "linkedin": "https://linkedin.com/in/asha",
    }
    data.update(overrides)
    files = {"pdf": ("story.pdf", pdf, "application/pdf")} if pdf is not None else None
    return client.post("/api/placements/submit-experience", data=data, files=files)


def test_submit_and_list_experiences(client, db):
    response = _submit(client, company="Zeta")
    assert response.status_code == 201
    assert response.json()["type"] == "success"
    _submit(client, company="Acme", type="intern")

    listed = client.get("/api/placements/experiences").json()
    assert [row["company"] for row in listed] == ["Acme", "Zeta"]
    first = listed[0]
    assert first["type"] == "Intern"
    assert first["status"] == "pending"
    assert first["year_of_passing"] == 2025
    assert first["linkedin_url"] == "https://linkedin.com/in/asha"
    assert first["email"] == "asha@example.com"
    assert "pdfFile" not in first and "pdf_file" not in first

    stored = db.query(Experience).filter(Experience.company == "Zeta").one()
    pdf = client.get(f"/api/placements/experiences/{stored.id}/pdf")
    assert pdf.status_code == 200
    assert pdf.content == b"%PDF-1.4 story"
    assert pdf.headers["content-type"] == "application/pdf"
    assert client.get("/api/placements/experiences/999/pdf").status_code == 404


def test_submit_experience_validation(client, db):
    assert _submit(client, pdf=None).status_code == 400
    assert _submit(client, name="").status_code == 400
    assert _submit(client, type="Fulltime").status_code == 400
    assert _submit(client, year="soon").status_code == 400

    too_large = _submit(client, pdf=b"%PDF" + b"0" * (1024 * 1024))
    assert too_large.status_code == 400
    assert "1MB" in too_large.json()["message"]

    wrong_type = client.post(
        "/api/placements/submit-experience",
        data={"name": "Asha", "email": "a@example.com", "type": "Intern", "year": "2025", "company": "Acme"},
        files={"pdf": ("story.png", b"\x89PNG", "image/png")},
    )
    assert wrong_type.status_code == 400
    assert db.query(Experience).count() == 0


def test_review_moves_experience_between_boards(client, db, admin_headers):
    _submit(client)
    experience_id = db.query(Experience).one().id

    assert client.get("/api/placements/admin/pending-experiences").status_code == 401
    pending = client.get("/api/placements/admin/pending-experiences", headers=admin_headers).json()
    assert [row["id"] for row in pending] == [experience_id]
    assert client.get("/api/placements/admin/approved-experiences", headers=admin_headers).json() == []

    response = client.post(
        "/api/placements/admin/update-experience-status",
        json={"id": experience_id, "status": "approved"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["message"] == f"Experience {experience_id} has been approved."

    approved = client.get("/api/placements/admin/approved-experiences", headers=admin_headers).json()
    assert [row["id"] for row in approved] == [experience_id]
    assert client.get("/api/placements/admin/pending-experiences", headers=admin_headers).json() == []

    db.expire_all()
    assert db.query(Experience).one().status == ExperienceStatus.APPROVED


def test_update_experience_status_errors(client, db, admin_headers):
    _submit(client)
    experience_id = db.query(Experience).one().id
    url = "/api/placements/admin/update-experience-status"

    assert client.post(url, json={"id": experience_id, "status": "pending"}, headers=admin_headers).status_code == 400
    assert client.post(url, json={"status": "approved"}, headers=admin_headers).status_code == 400
    assert client.post(url, json={"id": 999, "status": "rejected"}, headers=admin_headers).status_code == 404


def test_delete_experience(client, db, admin_headers):
    _submit(client)
    experience_id = db.query(Experience).one().id
    url = f"/api/placements/admin/delete-experience/{experience_id}"

    assert client.delete(url).status_code == 401
    assert client.delete(url, headers=admin_headers).status_code == 200
    assert client.delete(url, headers=admin_headers).status_code == 404
    assert db.query(Experience).count() == 0
