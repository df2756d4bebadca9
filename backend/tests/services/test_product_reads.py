"""Product read endpoints — listing, query features, search, category, single, stats.

Invariants:
    - Every success envelope has status "OK" and nests payload under "data"
    - List endpoints report count (list/popular/stats) or length (search/category)
    - Unknown filter fields match nothing; unknown operators are 400
"""

from uuid import uuid4

URL = "/api/v1/products"


def _names(res) -> list[str]:
    return [p["name"] for p in res.json()["data"]["products"]]


# ─── getProducts ─────────────────────────────────────────────────

async def test_list_without_params_returns_all(client, seeded_catalog):
    res = await client.get(URL)
    assert res.status_code == 200
    body = res.json()
    assert body["status"] == "OK"
    assert body["count"] == 5
    assert set(_names(res)) == set(seeded_catalog["products"])


async def test_list_returns_category_as_id(client, seeded_catalog):
    res = await client.get(URL, params={"name": "Hammer"})
    product = res.json()["data"]["products"][0]
    assert product["category"] == str(seeded_catalog["categories"]["Tools"].id)
    assert product["imgURL"] == "hammer.png"


async def test_filter_greater_than(client, seeded_catalog):
    res = await client.get(f"{URL}?price[gt]=5")
    assert res.status_code == 200
    assert set(_names(res)) == {"Hammer", "Shovel", "Rake"}


async def test_filter_range(client, seeded_catalog):
    res = await client.get(f"{URL}?price[gte]=4&price[lt]=10")
    assert set(_names(res)) == {"Wrench", "Rake"}


async def test_filter_equality(client, seeded_catalog):
    res = await client.get(URL, params={"price": "8"})
    assert _names(res) == ["Rake"]


async def test_filter_on_unknown_field_matches_nothing(client, seeded_catalog):
    res = await client.get(URL, params={"color": "red"})
    assert res.status_code == 200
    assert res.json()["count"] == 0


async def test_unknown_operator_is_rejected(client, seeded_catalog):
    res = await client.get(f"{URL}?price[regex]=1")
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "INVALID_QUERY_OPERATOR"


async def test_uncoercible_value_is_rejected(client, seeded_catalog):
    res = await client.get(f"{URL}?price[gt]=cheap")
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "INVALID_QUERY_VALUE"


async def test_sort_descending(client, seeded_catalog):
    res = await client.get(URL, params={"sort": "-price"})
    assert _names(res) == ["Shovel", "Hammer", "Rake", "Wrench", "Screwdriver"]


async def test_multi_key_sort(client, seeded_catalog):
    res = await client.get(URL, params={"sort": "category,name"})
    names = _names(res)
    tools = {"Hammer", "Screwdriver", "Wrench"}
    # grouped by category, alphabetical within each group
    groups = [names[:3], names[3:]] if names[0] in tools else [names[2:], names[:2]]
    assert groups[0] == sorted(tools)
    assert groups[1] == ["Rake", "Shovel"]


async def test_unknown_sort_field_is_ignored(client, seeded_catalog):
    res = await client.get(URL, params={"sort": "popularity"})
    assert res.status_code == 200
    assert res.json()["count"] == 5


async def test_field_limiting_projects_payload(client, seeded_catalog):
    res = await client.get(URL, params={"fields": "name,price"})
    for product in res.json()["data"]["products"]:
        assert set(product) == {"id", "name", "price"}


async def test_pagination(client, seeded_catalog):
    res = await client.get(URL, params={"sort": "price", "limit": "2", "page": "2"})
    assert _names(res) == ["Rake", "Hammer"]
    assert res.json()["count"] == 2


async def test_non_numeric_limit_falls_back_to_default(client, seeded_catalog):
    res = await client.get(URL, params={"limit": "many"})
    assert res.json()["count"] == 5


async def test_oversized_limit_is_capped(client, seeded_catalog):
    res = await client.get(URL, params={"limit": "99999999999999999999"})
    assert res.status_code == 200
    assert res.json()["count"] == 5


async def test_page_beyond_any_offset_is_empty(client, seeded_catalog):
    res = await client.get(
        URL, params={"limit": "2", "page": "99999999999999999999"},
    )
    assert res.status_code == 200
    assert res.json()["count"] == 0


# ─── queryBestProducts ───────────────────────────────────────────

async def test_popular_injects_fixed_query(client, seeded_catalog):
    res = await client.get(f"{URL}/popular")
    assert res.status_code == 200
    body = res.json()
    assert body["count"] == 4
    assert "Screwdriver" not in _names(res)
    for product in body["data"]["products"]:
        assert set(product) <= {"id", "name", "price", "description", "category"}


async def test_popular_overrides_caller_limit(client, seeded_catalog):
    res = await client.get(f"{URL}/popular", params={"limit": "1"})
    assert res.json()["count"] == 4


# ─── getProductsOfCategory ───────────────────────────────────────

async def test_category_lookup_is_case_insensitive(client, seeded_catalog):
    res = await client.get(f"{URL}/category/tOOls")
    assert res.status_code == 200
    body = res.json()
    assert body["length"] == 3
    tools_id = str(seeded_catalog["categories"]["Tools"].id)
    for product in body["data"]["products"]:
        assert product["category"] == {"id": tools_id, "name": "Tools"}


async def test_category_lookup_is_exact(client, seeded_catalog):
    res = await client.get(f"{URL}/category/Tool")
    assert res.status_code == 400


async def test_category_lookup_folds_non_ascii_case(client, test_db):
    from catalog.models.category import Category

    test_db.add(Category(name="Électronique"))
    await test_db.commit()
    res = await client.get(f"{URL}/category/électronique")
    assert res.status_code == 200
    assert res.json()["length"] == 0


async def test_unknown_category_is_400(client, seeded_catalog):
    res = await client.get(f"{URL}/category/Kitchen")
    assert res.status_code == 400
    assert "Kitchen" in res.json()["error"]["message"]


# ─── searchProducts ──────────────────────────────────────────────

async def test_search_is_case_insensitive_substring(client, seeded_catalog):
    res = await client.get(f"{URL}/search", params={"name": "AMM"})
    assert res.status_code == 200
    body = res.json()
    assert body["length"] == 1
    product = body["data"]["products"][0]
    assert product["name"] == "Hammer"
    assert product["category"]["name"] == "Tools"


async def test_search_without_matches_returns_empty_list(client, seeded_catalog):
    res = await client.get(f"{URL}/search", params={"name": "laser"})
    assert res.status_code == 200
    assert res.json() == {"status": "OK", "length": 0, "data": {"products": []}}


async def test_search_name_is_a_regular_expression(client, seeded_catalog):
    res = await client.get(f"{URL}/search", params={"name": "^ham"})
    assert res.status_code == 200
    assert res.json()["length"] == 1
    assert _names(res) == ["Hammer"]

    res = await client.get(f"{URL}/search", params={"name": "^(rake|shovel)$"})
    assert sorted(_names(res)) == ["Rake", "Shovel"]


async def test_search_with_invalid_pattern_is_400(client, seeded_catalog):
    res = await client.get(f"{URL}/search", params={"name": "("})
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "INVALID_SEARCH_PATTERN"


# ─── getOneProduct ───────────────────────────────────────────────

async def test_get_one_enriches_with_category_name_only(client, seeded_catalog):
    hammer = seeded_catalog["products"]["Hammer"]
    res = await client.get(f"{URL}/{hammer.id}")
    assert res.status_code == 200
    data = res.json()["data"]
    assert data["id"] == str(hammer.id)
    assert data["name"] == "Hammer"
    assert data["category"] == {"name": "Tools"}


async def test_get_one_unknown_id_is_400(client, seeded_catalog):
    res = await client.get(f"{URL}/{uuid4()}")
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "RESOURCE_NOT_FOUND"


async def test_get_one_malformed_id_is_400(client, seeded_catalog):
    res = await client.get(f"{URL}/not-a-uuid")
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"


# ─── getStats ────────────────────────────────────────────────────

async def test_stats_group_by_category(client, seeded_catalog):
    res = await client.get(f"{URL}/stats")
    assert res.status_code == 200
    body = res.json()
    assert body["count"] == 2
    garden, tools = body["data"]["stats"]
    assert garden["category"]["name"] == "Garden"
    assert garden["totalProducts"] == 2
    assert tools["category"] == {
        "id": str(seeded_catalog["categories"]["Tools"].id), "name": "Tools",
    }
    assert tools["totalProducts"] == 3
    assert tools["minPrice"] == 1.5
    assert tools["maxPrice"] == 10
    assert tools["totalPrice"] == 15.5
    assert abs(tools["avgPrice"] - 15.5 / 3) < 1e-9


async def test_stats_counts_sum_to_product_total(client, seeded_catalog):
    res = await client.get(f"{URL}/stats")
    total = sum(row["totalProducts"] for row in res.json()["data"]["stats"])
    assert total == len(seeded_catalog["products"])


async def test_stats_on_empty_store(client):
    res = await client.get(f"{URL}/stats")
    assert res.json() == {"status": "OK", "count": 0, "data": {"stats": []}}
