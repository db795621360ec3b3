# test_tables.py

def jprint(step, r):
    """Helper to assert on failure and return the JSON body."""
    assert 200 <= r.status_code < 300, f"{step} -> {r.status_code}: {r.text}"
    return r.json()


def test_requires_token(client):
    r = client.get("/tables")
    assert r.status_code == 401
    assert r.json()["message"] == "Not authenticated"

    r = client.get("/tables", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401


def test_create_list_and_duplicate(client, auth_headers):
    jprint("POST /tables 5", client.post("/tables", headers=auth_headers, json={"table_number": 5}))
    jprint("POST /tables 2", client.post("/tables", headers=auth_headers, json={"table_number": 2}))

    r = client.post("/tables", headers=auth_headers, json={"table_number": 5})
    assert r.status_code == 409

    tables = jprint("GET /tables", client.get("/tables", headers=auth_headers))
    assert [t["table_number"] for t in tables] == [2, 5]
    assert all(t["status"] == "Available" for t in tables)


def test_bulk_create_and_conflicts(client, auth_headers):
    created = jprint("POST /tables/bulk", client.post("/tables/bulk", headers=auth_headers,
                                                     json={"base_number": 10, "quantity": 3}))
    assert [t["table_number"] for t in created] == [10, 11, 12]

    # overlapping range: nothing is created, conflicts listed
    r = client.post("/tables/bulk", headers=auth_headers, json={"base_number": 12, "quantity": 3})
    assert r.status_code == 400
    assert r.json()["conflicting_numbers"] == [12]
    tables = jprint("GET /tables", client.get("/tables", headers=auth_headers))
    assert [t["table_number"] for t in tables] == [10, 11, 12]

    for qty in (0, 51):
        r = client.post("/tables/bulk", headers=auth_headers, json={"base_number": 100, "quantity": qty})
        assert r.status_code == 400, qty


def test_status_and_delete(client, auth_headers):
    t = jprint("POST /tables", client.post("/tables", headers=auth_headers, json={"table_number": 1}))

    r = client.patch(f"/tables/{t['id']}/status", headers=auth_headers, json={"status": "Occupied"})
    assert jprint("PATCH status", r)["status"] == "Occupied"

    r = client.patch(f"/tables/{t['id']}/status", headers=auth_headers, json={"status": "Dirty"})
    assert r.status_code == 400

    jprint("DELETE /tables", client.delete(f"/tables/{t['id']}", headers=auth_headers))
    assert client.delete(f"/tables/{t['id']}", headers=auth_headers).status_code == 404
    assert client.delete("/tables/not-an-id", headers=auth_headers).status_code == 404


def test_tables_are_tenant_scoped(client, auth_headers, other_headers):
    t = jprint("POST /tables", client.post("/tables", headers=auth_headers, json={"table_number": 1}))

    # same number is fine for another restaurant
    jprint("POST /tables other", client.post("/tables", headers=other_headers, json={"table_number": 1}))
    assert len(jprint("GET other", client.get("/tables", headers=other_headers))) == 1

    r = client.patch(f"/tables/{t['id']}/status", headers=other_headers, json={"status": "Occupied"})
    assert r.status_code == 404
