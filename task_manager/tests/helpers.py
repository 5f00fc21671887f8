def register(client, email="ada@example.com", password="secret123", name="Ada"):
    payload = {"email": email, "password": password}
    if name is not None:
        payload["name"] = name
    return client.post("/auth/register", json=payload)


def login_headers(client, email="ada@example.com", password="secret123"):
    res = client.post("/auth/login", json={"email": email, "password": password})
    assert res.status_code == 200, res.text
    return {"Authorization": f"Bearer {res.json()['token']}"}


def signed_up(client, email="ada@example.com", password="secret123"):
    """Register then log in; return bearer headers."""
    assert register(client, email=email, password=password).status_code == 201
    return login_headers(client, email=email, password=password)


def task_payload(title="Pay rent", description="", due_date="2025-01-05", priority="High"):
    return {
        "title": title,
        "description": description,
        "due_date": due_date,
        "priority": priority,
    }


def assert_error_shape(body: dict):
    assert body["success"] is False
    assert isinstance(body["message"], str) and body["message"]
    assert "stack" in body
