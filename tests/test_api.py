from __future__ import annotations


def _section_id(client, slug: str) -> str:
    return next(s["id"] for s in client.get("/api/panel-sections").get_json() if s["slug"] == slug)


def _type_id(client, name: str) -> str:
    return next(t["id"] for t in client.get("/api/component-types").get_json() if t["name"] == name)


def _board_id(client) -> str:
    return client.get("/api/boards").get_json()[0]["id"]


def test_health(client) -> None:
    resp = client.get("/api/health")
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["ok"] is True
    assert body["counts"]["panel_sections"] == 12


def test_unknown_route_is_json_404(client) -> None:
    resp = client.get("/api/nope")
    assert resp.status_code == 404
    assert "error" in resp.get_json()


def test_section_crud(client) -> None:
    resp = client.post("/api/panel-sections", json={"name": "Spare", "slug": "spare"})
    assert resp.status_code == 201
    sid = resp.get_json()["id"]

    resp = client.patch(f"/api/panel-sections/{sid}", json={"build_status": "PLANNED"})
    assert resp.status_code == 200
    assert resp.get_json()["onboarded_at"]

    assert client.post("/api/panel-sections", json={"name": "Dup", "slug": "spare"}).status_code == 409
    assert client.delete(f"/api/panel-sections/{sid}").status_code == 204
    assert client.get(f"/api/panel-sections/{sid}").status_code == 404


def test_validation_errors_are_400(client) -> None:
    resp = client.post("/api/panel-sections", json={"slug": "Bad Slug"})
    assert resp.status_code == 400
    assert resp.get_json()["error"].startswith("Validation failed: ")


def test_malformed_json(client) -> None:
    resp = client.post("/api/boards", data="{not json", content_type="application/json")
    assert resp.status_code == 400
    assert resp.get_json() == {"error": "Malformed JSON body"}


def test_pin_flow(client) -> None:
    sid = _section_id(client, "fuel")
    inst = client.post(
        "/api/component-instances",
        json={"name": "Xfeed Light", "component_type_id": _type_id(client, "Annunciator"), "panel_section_id": sid},
    )
    assert inst.status_code == 201
    bid = _board_id(client)
    pin = client.post(
        "/api/pin-assignments",
        json={"board_id": bid, "pin_number": "D5", "pin_type": "DIGITAL", "component_instance_id": inst.get_json()["id"]},
    )
    assert pin.status_code == 201
    pin_id = pin.get_json()["id"]

    dup = client.post("/api/pin-assignments", json={"board_id": bid, "pin_number": "D5", "pin_type": "DIGITAL"})
    assert dup.status_code == 409
    assert dup.get_json()["error"] == "Pin D5 is already assigned on board Alpha"

    listed = client.get("/api/pin-assignments", query_string={"assigned": "true"}).get_json()
    assert [p["pin_number"] for p in listed] == ["D5"]
    assert client.get("/api/pin-assignments", query_string={"assigned": "maybe"}).status_code == 400

    bulk = client.patch("/api/pin-assignments/bulk", json={"ids": [pin_id], "data": {"wiring_status": "WIRED"}})
    assert bulk.get_json() == {"updated": 1}

    mapping = client.put(f"/api/mobiflight/mapping/{pin_id}", json={"variable_name": "146_FUEL_XFEED_LIGHT"})
    assert mapping.status_code == 200
    preview = client.get(f"/api/mobiflight/preview/{bid}").get_json()
    assert preview["devices"][0]["variable_name"] == "146_FUEL_XFEED_LIGHT"

    suggestions = client.get(f"/api/lvars/suggest/{pin_id}").get_json()
    assert suggestions[0]["name"] == "146_FUEL_XFEED_LIGHT"

    assert client.delete(f"/api/panel-sections/{sid}").status_code == 409
    assert client.delete(f"/api/pin-assignments/{pin_id}").status_code == 204


def test_bom_calculate_and_apply(client) -> None:
    sid = _section_id(client, "apu")
    client.post(
        "/api/component-instances",
        json={"name": "APU Master", "component_type_id": _type_id(client, "Toggle Switch"), "panel_section_id": sid},
    )
    assert client.post("/api/bom/calculate", json={}).status_code == 400
    result = client.post("/api/bom/calculate", json={"section_id": sid}).get_json()
    assert result["components"][0]["allocations"][0]["pins"] == ["D0"]

    applied = client.post("/api/bom/apply", json=result)
    assert applied.status_code == 201
    assert applied.get_json()["total_pins_created"] == 1
    assert client.post("/api/bom/apply", json=result).status_code == 409


def test_power_scenario(client) -> None:
    resp = client.post("/api/power-budget/scenario", json={"scenario": "cruise"})
    assert resp.status_code == 200
    assert resp.get_json()["level"] == "green"
    assert client.post("/api/power-budget/scenario", json={"scenario": "takeoff"}).status_code == 400
    assert client.patch("/api/power-budget/psu-config", json={"capacity_watts": 400}).get_json()["capacity_watts"] == 400
    rails = client.get("/api/power-budget").get_json()["rails"]
    assert [r["rail"] for r in rails] == ["FIVE_V", "NINE_V", "TWENTY_SEVEN_V", "NONE"]


def test_build_progress_status(client) -> None:
    sid = _section_id(client, "fuel")
    inst = client.post(
        "/api/component-instances",
        json={"name": "Fuel Qty", "component_type_id": _type_id(client, "Gauge"), "panel_section_id": sid},
    ).get_json()
    resp = client.patch(f"/api/build-progress/component/{inst['id']}/status", json={"build_status": "COMPLETE"})
    assert resp.status_code == 200
    progress = client.get("/api/build-progress").get_json()
    assert progress["overall"] == {"total": 1, "completed": 1, "percentage": 100}


def test_mosfet_board_routes(client) -> None:
    resp = client.post("/api/mosfet-boards", json={"name": "MOSFET A", "channel_count": 4})
    assert resp.status_code == 201
    mid = resp.get_json()["id"]
    assert len(client.get(f"/api/mosfet-boards/{mid}").get_json()["channels"]) == 4
    assert client.delete(f"/api/mosfet-boards/{mid}").status_code == 204


def test_journal_routes(client) -> None:
    resp = client.post("/api/journal", json={"title": "Start", "body": "Opened the box."})
    assert resp.status_code == 201
    eid = resp.get_json()["id"]
    assert client.get("/api/journal", query_string={"search": "box"}).get_json()[0]["id"] == eid
    assert client.delete(f"/api/journal/{eid}").status_code == 204
    assert client.get(f"/api/journal/{eid}").status_code == 404


def test_export_import_round_trip(client) -> None:
    payload = client.get("/api/export/json").get_json()
    assert len(payload["component_types"]) == 8
    resp = client.post("/api/import/json", json=payload)
    assert resp.status_code == 200
    assert resp.get_json()["counts"]["boards"] == 1
    bad = client.post("/api/import/json", json={"boards": []})
    assert bad.status_code == 400

    empty_board = dict(payload, boards=[{}])
    resp = client.post("/api/import/json", json=empty_board)
    assert resp.status_code == 400
    assert resp.get_json() == {"error": 'Import data "boards" has a record without an id'}
    assert len(client.get("/api/boards").get_json()) == 1


def test_lvar_routes(client) -> None:
    assert len(client.get("/api/lvars/sections").get_json()) == 10
    assert len(client.get("/api/lvars/sections/overhead_fuel").get_json()) == 8
    names = [e["name"] for e in client.get("/api/lvars", query_string={"q": "xfeed"}).get_json()]
    assert names == ["146_FUEL_XFEED_VALVE", "146_FUEL_XFEED_LIGHT"]
