from datetime import datetime
from typing import Optional, List
from sqlalchemy import select, func, delete
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from .models import Category, Style, PromptTemplate, GenerationRecord
from .seed import DEFAULT_CATEGORIES

logger = logging.getLogger(__name__)


# ==================== CATEGORY OPERATIONS ====================

async def get_categories(session: AsyncSession) -> List[Category]:
    """Get all categories ordered by name"""
    result = await session.execute(
        select(Category).order_by(Category.name)
    )
    return result.scalars().all()


async def get_category_by_id(session: AsyncSession, category_id: str) -> Optional[Category]:
    result = await session.execute(
        select(Category).where(Category.id == category_id)
    )
    return result.scalar_one_or_none()


async def create_category(
    session: AsyncSession,
    category_id: str,
    name: str,
    description: str = "",
    image_url: Optional[str] = None,
    sort_order: int = 0
) -> Category:
    """Create category"""
    category = Category(
        id=category_id,
        name=name,
        description=description,
        image_url=image_url,
        sort_order=sort_order
    )
    session.add(category)
    await session.commit()
    await session.refresh(category)
    logger.info(f"Created category {category_id}")
    return category


async def update_category(
    session: AsyncSession,
    category_id: str,
    name: Optional[str] = None,
    description: Optional[str] = None,
    image_url: Optional[str] = None
) -> Optional[Category]:
    """Update category"""
    category = await get_category_by_id(session, category_id)
    if not category:
        return None

    if name:
        category.name = name
    if description is not None:
        category.description = description
    if image_url is not None:
        category.image_url = image_url
    category.updated_at = datetime.utcnow()

    await session.commit()
    await session.refresh(category)
    return category


async def delete_category(session: AsyncSession, category_id: str) -> bool:
    """Delete category together with its styles"""
    category = await get_category_by_id(session, category_id)
    if not category:
        return False

    await session.execute(delete(Style).where(Style.category_id == category_id))
    await session.delete(category)
    await session.commit()
    logger.info(f"Deleted category {category_id}")
    return True


# ==================== STYLE OPERATIONS ====================

async def get_styles(session: AsyncSession, category_id: Optional[str] = None) -> List[Style]:
    """Get styles ordered by name, optionally for one category"""
    query = select(Style)
    if category_id:
        query = query.where(Style.category_id == category_id)
    query = query.order_by(Style.name)
    result = await session.execute(query)
    return result.scalars().all()


async def get_style_by_id(session: AsyncSession, style_id: str) -> Optional[Style]:
    result = await session.execute(
        select(Style).where(Style.id == style_id)
    )
    return result.scalar_one_or_none()


async def create_style(
    session: AsyncSession,
    style_id: str,
    category_id: str,
    name: str,
    prompt: str,
    description: str = "",
    placeholder: Optional[str] = None
) -> Style:
    """
    Create style

    Raises:
        ValueError: If the category does not exist
    """
    if not await get_category_by_id(session, category_id):
        raise ValueError(f"Category {category_id} not found")

    style = Style(
        id=style_id,
        category_id=category_id,
        name=name,
        description=description,
        prompt=prompt,
        placeholder=placeholder
    )
    session.add(style)
    await session.commit()
    await session.refresh(style)
    logger.info(f"Created style {style_id} in category {category_id}")
    return style


async def update_style(
    session: AsyncSession,
    style_id: str,
    name: Optional[str] = None,
    description: Optional[str] = None,
    prompt: Optional[str] = None,
    placeholder: Optional[str] = None,
    category_id: Optional[str] = None
) -> Optional[Style]:
    """Update style"""
    style = await get_style_by_id(session, style_id)
    if not style:
        return None

    if name:
        style.name = name
    if description is not None:
        style.description = description
    if prompt:
        style.prompt = prompt
    if placeholder is not None:
        style.placeholder = placeholder
    if category_id:
        if not await get_category_by_id(session, category_id):
            raise ValueError(f"Category {category_id} not found")
        style.category_id = category_id
    style.updated_at = datetime.utcnow()

    await session.commit()
    await session.refresh(style)
    return style


async def delete_style(session: AsyncSession, style_id: str) -> bool:
    style = await get_style_by_id(session, style_id)
    if not style:
        return False

    await session.delete(style)
    await session.commit()
    return True


# ==================== PROMPT OPERATIONS ====================

async def get_prompts(session: AsyncSession) -> List[PromptTemplate]:
    result = await session.execute(
        select(PromptTemplate).order_by(PromptTemplate.key)
    )
    return result.scalars().all()


async def get_prompt_by_key(session: AsyncSession, key: str) -> Optional[PromptTemplate]:
    result = await session.execute(
        select(PromptTemplate).where(PromptTemplate.key == key)
    )
    return result.scalar_one_or_none()


async def upsert_prompt(
    session: AsyncSession,
    key: str,
    content: str,
    label: Optional[str] = None,
    description: Optional[str] = None
) -> PromptTemplate:
    """Create prompt or replace the content of an existing one"""
    prompt = await get_prompt_by_key(session, key)
    if prompt:
        prompt.content = content
        if label:
            prompt.label = label
        if description is not None:
            prompt.description = description
        prompt.updated_at = datetime.utcnow()
    else:
        prompt = PromptTemplate(
            key=key,
            label=label or key,
            content=content,
            description=description
        )
        session.add(prompt)

    await session.commit()
    await session.refresh(prompt)
    return prompt


async def delete_prompt(session: AsyncSession, key: str) -> bool:
    prompt = await get_prompt_by_key(session, key)
    if not prompt:
        return False

    await session.delete(prompt)
    await session.commit()
    return True


# ==================== GENERATION HISTORY ====================

async def create_generation_record(
    session: AsyncSession,
    session_id: str,
    product_name: str,
    mode: str,
    kind: str,
    prompt_used: str,
    result_url: str,
    category_id: Optional[str] = None,
    style_id: Optional[str] = None
) -> GenerationRecord:
    """
    Record a finished generation

    Args:
        session_id: Wizard session ID (not a database ID)
        kind: image, video or campaign
        prompt_used: Prompt sent to the provider
        result_url: Public URL of the result
    """
    record = GenerationRecord(
        session_id=session_id,
        product_name=product_name,
        category_id=category_id,
        style_id=style_id,
        mode=mode,
        kind=kind,
        prompt_used=prompt_used,
        result_url=result_url
    )
    session.add(record)
    await session.commit()
    logger.info(f"Created {kind} generation record for session {session_id}")
    return record


async def get_generation_records(
    session: AsyncSession,
    session_id: Optional[str] = None,
    limit: int = 50
) -> List[GenerationRecord]:
    query = select(GenerationRecord)
    if session_id:
        query = query.where(GenerationRecord.session_id == session_id)
    query = query.order_by(GenerationRecord.created_at.desc(), GenerationRecord.id.desc()).limit(limit)
    result = await session.execute(query)
    return result.scalars().all()


# ==================== SEEDING ====================

async def seed_catalog(session: AsyncSession, force: bool = False) -> int:
    """
    Insert the default categories and styles

    Args:
        force: Insert missing rows even if the catalog is not empty

    Returns:
        Number of styles inserted
    """
    count = (await session.execute(select(func.count(Category.id)))).scalar() or 0
    if count and not force:
        logger.info(f"Catalog already has {count} categories, skipping seed")
        return 0

    inserted = 0
    for order, data in enumerate(DEFAULT_CATEGORIES):
        category = await get_category_by_id(session, data["id"])
        if not category:
            session.add(Category(
                id=data["id"],
                name=data["name"],
                description=data["description"],
                image_url=data["image_url"],
                sort_order=order
            ))

        for style_id, name, description, prompt, placeholder in data["styles"]:
            if await get_style_by_id(session, style_id):
                continue
            session.add(Style(
                id=style_id,
                category_id=data["id"],
                name=name,
                description=description,
                prompt=prompt,
                placeholder=placeholder
            ))
            inserted += 1

    await session.commit()
    logger.info(f"Seeded catalog with {inserted} styles")
    return inserted
