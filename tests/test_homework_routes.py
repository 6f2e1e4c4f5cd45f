from studysphere.errors import ExtractionError


def test_upload_requires_auth(client):
    rv = client.post("/api/homework/upload")
    assert rv.status_code == 401
    assert rv.json["success"] is False


def test_upload_rejects_bad_token(client):
    rv = client.get("/api/homework/list", headers={"Authorization": "Bearer not-a-jwt"})
    assert rv.status_code == 401


def test_upload_without_file(client, auth_headers, dispatched):
    rv = client.post("/api/homework/upload", headers=auth_headers(), data={})
    assert rv.status_code == 400
    assert dispatched == []


def test_upload_rejects_extension(upload, dispatched):
    rv = upload("/api/homework/upload", filename="problem.exe")
    assert rv.status_code == 400
    assert "Invalid file type" in rv.json["error"]
    assert dispatched == []


def test_upload_rejects_empty_file(upload, dispatched):
    rv = upload("/api/homework/upload", content=b"")
    assert rv.status_code == 400
    assert dispatched == []


def test_submit_then_read_immediately_is_pending(upload, client, auth_headers, dispatched):
    rv = upload("/api/homework/upload")
    assert rv.status_code == 201
    assert rv.json["success"] is True
    job_id = rv.json["data"]["jobId"]
    assert rv.json["data"]["status"] == "pending"
    assert dispatched == [job_id]

    rv = client.get(f"/api/homework/solved/{job_id}", headers=auth_headers())
    assert rv.status_code == 200
    data = rv.json["data"]
    assert data["job"]["status"] == "pending"
    assert data["job"]["original_filename"] == "problem.pdf"
    assert data["result"] is None


def test_settled_job_has_solution(upload, client, auth_headers, fake_collaborators, settle):
    job_id = upload("/api/homework/upload").json["data"]["jobId"]
    settle()

    rv = client.get(f"/api/homework/solved/{job_id}", headers=auth_headers())
    data = rv.json["data"]
    assert data["job"]["status"] == "completed"
    assert data["result"]["final_answer"] == "x = 2"
    assert data["result"]["problem_type"] == "mathematic"


def test_failed_extraction_is_visible_to_reader(upload, client, auth_headers, fake_collaborators, settle):
    fake_collaborators.extractor.error = ExtractionError("No text extracted with sufficient confidence")
    job_id = upload("/api/homework/upload", filename="blank.png").json["data"]["jobId"]
    settle()

    data = client.get(f"/api/homework/solved/{job_id}", headers=auth_headers()).json["data"]
    assert data["job"]["status"] == "failed"
    assert data["job"]["error_detail"] == "No text extracted with sufficient confidence"
    assert data["result"] is None


def test_repeated_reads_are_identical(upload, client, auth_headers, fake_collaborators, settle):
    job_id = upload("/api/homework/upload").json["data"]["jobId"]
    settle()

    first = client.get(f"/api/homework/solved/{job_id}", headers=auth_headers())
    second = client.get(f"/api/homework/solved/{job_id}", headers=auth_headers())
    assert first.data == second.data


def test_other_user_gets_403(upload, client, auth_headers, dispatched):
    job_id = upload("/api/homework/upload", user_id="alice").json["data"]["jobId"]

    rv = client.get(f"/api/homework/solved/{job_id}", headers=auth_headers("bob"))
    assert rv.status_code == 403
    rv = client.delete(f"/api/homework/{job_id}", headers=auth_headers("bob"))
    assert rv.status_code == 403


def test_unknown_id_gets_404(client, auth_headers):
    rv = client.get("/api/homework/solved/does-not-exist", headers=auth_headers())
    assert rv.status_code == 404


def test_note_id_under_homework_gets_404(upload, client, auth_headers, dispatched):
    note_id = upload("/api/notes/upload", field="audio", filename="lecture.mp3").json["data"]["jobId"]
    rv = client.get(f"/api/homework/solved/{note_id}", headers=auth_headers())
    assert rv.status_code == 404


def test_list_only_has_own_jobs(upload, client, auth_headers, dispatched):
    a = upload("/api/homework/upload").json["data"]["jobId"]
    b = upload("/api/homework/upload").json["data"]["jobId"]
    upload("/api/homework/upload", user_id="someone-else")

    rv = client.get("/api/homework/list", headers=auth_headers())
    ids = [j["id"] for j in rv.json["data"]]
    assert set(ids) == {a, b}
    assert len(ids) == 2


def test_delete(upload, client, auth_headers, dispatched):
    job_id = upload("/api/homework/upload").json["data"]["jobId"]

    rv = client.delete(f"/api/homework/{job_id}", headers=auth_headers())
    assert rv.status_code == 200
    assert rv.json["success"] is True
    assert client.get(f"/api/homework/solved/{job_id}", headers=auth_headers()).status_code == 404


def test_enqueue_failure_marks_job_failed(upload, client, auth_headers, monkeypatch):
    def broken_delay(job_id):
        raise ConnectionError("broker down")

    monkeypatch.setattr("studysphere.tasks.job_tasks.run_job.delay", broken_delay)
    rv = upload("/api/homework/upload")
    assert rv.status_code == 201
    job_id = rv.json["data"]["jobId"]

    data = client.get(f"/api/homework/solved/{job_id}", headers=auth_headers()).json["data"]
    assert data["job"]["status"] == "failed"
    assert "Could not enqueue job" in data["job"]["error_detail"]
