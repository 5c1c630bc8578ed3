import pytest

from taswira.database import crud
from taswira.database.seed import DEFAULT_CATEGORIES


async def test_seed_catalog(db_session):
    inserted = await crud.seed_catalog(db_session)

    categories = await crud.get_categories(db_session)
    assert inserted == 36
    assert len(categories) == len(DEFAULT_CATEGORIES) == 6
    assert [c.name for c in categories] == sorted(c.name for c in categories)

    styles = await crud.get_styles(db_session, "products")
    assert len(styles) == 6
    assert all(s.category_id == "products" for s in styles)
    assert all("UNCHANGED" in s.prompt for s in styles)


async def test_seed_is_skipped_when_catalog_exists(db_session):
    await crud.seed_catalog(db_session)

    assert await crud.seed_catalog(db_session) == 0
    # force only fills in missing rows
    assert await crud.seed_catalog(db_session, force=True) == 0

    await crud.delete_style(db_session, "studio")
    assert await crud.seed_catalog(db_session, force=True) == 1


async def test_category_crud(db_session):
    category = await crud.create_category(db_session, "pets", "Pets", "Pet products")
    assert category.to_dict() == {"id": "pets", "name": "Pets", "description": "Pet products", "imageUrl": None}

    updated = await crud.update_category(db_session, "pets", name="Pet Shop", image_url="https://cdn.test/p.jpg")
    assert updated.name == "Pet Shop"
    assert updated.description == "Pet products"
    assert updated.image_url == "https://cdn.test/p.jpg"

    assert await crud.update_category(db_session, "missing", name="x") is None


async def test_delete_category_removes_styles(db_session):
    await crud.create_category(db_session, "pets", "Pets")
    await crud.create_style(db_session, "cozy", "pets", "Cozy", "Warm living room")

    assert await crud.delete_category(db_session, "pets") is True
    assert await crud.get_category_by_id(db_session, "pets") is None
    assert await crud.get_style_by_id(db_session, "cozy") is None
    assert await crud.delete_category(db_session, "pets") is False


async def test_style_crud(db_session):
    await crud.create_category(db_session, "pets", "Pets")
    await crud.create_category(db_session, "toys", "Toys")

    style = await crud.create_style(db_session, "cozy", "pets", "Cozy", "Warm living room", placeholder="e.g. dog bed")
    assert style.to_dict() == {
        "id": "cozy",
        "categoryId": "pets",
        "name": "Cozy",
        "description": "",
        "prompt": "Warm living room",
        "placeholder": "e.g. dog bed",
    }

    moved = await crud.update_style(db_session, "cozy", prompt="Sunny garden", category_id="toys")
    assert moved.prompt == "Sunny garden"
    assert moved.category_id == "toys"
    assert await crud.get_styles(db_session, "pets") == []

    with pytest.raises(ValueError):
        await crud.update_style(db_session, "cozy", category_id="nope")

    assert await crud.delete_style(db_session, "cozy") is True
    assert await crud.delete_style(db_session, "cozy") is False


async def test_create_style_unknown_category(db_session):
    with pytest.raises(ValueError, match="not found"):
        await crud.create_style(db_session, "cozy", "nope", "Cozy", "Warm")


async def test_prompts(db_session):
    created = await crud.upsert_prompt(db_session, "analyze_product", "First version")
    assert created.label == "analyze_product"

    await crud.upsert_prompt(db_session, "analyze_product", "Second version", label="Analysis")
    prompt = await crud.get_prompt_by_key(db_session, "analyze_product")
    assert prompt.content == "Second version"
    assert prompt.label == "Analysis"
    assert len(await crud.get_prompts(db_session)) == 1

    assert await crud.delete_prompt(db_session, "analyze_product") is True
    assert await crud.get_prompt_by_key(db_session, "analyze_product") is None
    assert await crud.delete_prompt(db_session, "analyze_product") is False


async def test_generation_records(db_session):
    for kind in ("image", "video"):
        await crud.create_generation_record(
            db_session,
            session_id="abc",
            product_name="Mug",
            mode="photovideo",
            kind=kind,
            prompt_used="prompt",
            result_url=f"https://cdn.test/{kind}",
            style_id="studio"
        )
    await crud.create_generation_record(
        db_session, session_id="other", product_name="Lamp", mode="photo",
        kind="image", prompt_used="p", result_url="https://cdn.test/x"
    )

    records = await crud.get_generation_records(db_session, session_id="abc")
    assert [r.kind for r in records] == ["video", "image"]
    assert len(await crud.get_generation_records(db_session)) == 3
    assert len(await crud.get_generation_records(db_session, limit=1)) == 1
