"""Seed script to create a demo project.

Creates a "Website Redesign" project with a few custom fields and tasks
spread over every board column, so a fresh install has something to drag
around.

Usage:
    python -m taskboard.scripts.seed_demo_project
"""

import asyncio
from datetime import date, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.db.session import async_session_factory, create_tables, engine
from taskboard.models.project import Project
from taskboard.schemas import Assignee, CustomFieldCreate, ProjectCreate, TaskCreate
from taskboard.services import CustomFieldService, ProjectService, TaskService

DEMO_PROJECT = {
    "title": "Demo: Website Redesign",
    "description": "Tasks and timeline for the company website redesign.",
    "status": "active",
}

CUSTOM_FIELDS = [
    {"name": "Estimate (hours)", "type": "number"},
    {"name": "Component", "type": "select", "options": ["Frontend", "Backend", "Design"]},
    {"name": "Platforms", "type": "multiselect", "options": ["Web", "iOS", "Android"]},
    {"name": "Spec link", "type": "url"},
]

TASKS = [
    {
        "title": "Design homepage mockup",
        "description": "Create a mockup for the new homepage based on the approved wireframes.",
        "status": "done",
        "priority": "high",
        "assignee": "Jane Smith",
        "due_in_days": -7,
        "tags": ["design"],
        "fields": {"Component": "Design", "Estimate (hours)": 12},
    },
    {
        "title": "Implement navigation component",
        "description": "Develop the responsive navigation component.",
        "status": "in-progress",
        "priority": "medium",
        "assignee": "John Doe",
        "due_in_days": 3,
        "tags": ["frontend"],
        "fields": {"Component": "Frontend", "Platforms": ["Web", "iOS"]},
    },
    {
        "title": "Optimize image loading",
        "description": "Lazy load images to improve page load performance.",
        "status": "todo",
        "priority": "low",
        "due_in_days": 10,
        "tags": ["frontend", "performance"],
        "fields": {"Spec link": "https://example.com/specs/images"},
    },
    {
        "title": "Set up contact form endpoint",
        "description": "Backend endpoint that stores contact form submissions.",
        "status": "todo",
        "priority": "medium",
        "assignee": "Alex Kim",
        "tags": ["backend"],
        "fields": {"Component": "Backend", "Estimate (hours)": 5},
    },
    {
        "title": "Accessibility audit",
        "description": "Check colour contrast and keyboard navigation on every page.",
        "status": "review",
        "priority": "high",
        "assignee": "Jane Smith",
        "due_in_days": 1,
        "tags": ["design", "a11y"],
        "fields": {},
    },
]


async def check_existing_demo(db: AsyncSession) -> bool:
    """Check if the demo project already exists."""
    result = await db.execute(select(Project).where(Project.title == DEMO_PROJECT["title"]))
    return result.scalar_one_or_none() is not None


async def seed_demo_project(db: AsyncSession) -> None:
    """Create the demo project, its custom fields and tasks."""
    if await check_existing_demo(db):
        print("Demo project already exists. Skipping seed.")
        return

    project = await ProjectService(db).create_project(ProjectCreate(**DEMO_PROJECT))
    print(f"Created project: {project.title}")

    field_service = CustomFieldService(db)
    field_ids: dict[str, str] = {}
    for definition in CUSTOM_FIELDS:
        field = await field_service.create_field(CustomFieldCreate(project_id=project.id, **definition))
        field_ids[field.name] = field.id
    print(f"  Created {len(field_ids)} custom fields")

    task_service = TaskService(db)
    today = date.today()
    for definition in TASKS:
        due_in_days = definition.get("due_in_days")
        await task_service.create_task(
            TaskCreate(
                project_id=project.id,
                title=definition["title"],
                description=definition["description"],
                status=definition["status"],
                priority=definition["priority"],
                assignee=Assignee.from_name(definition["assignee"]) if definition.get("assignee") else None,
                due_date=today + timedelta(days=due_in_days) if due_in_days is not None else None,
                tags=definition["tags"],
                custom_fields={field_ids[name]: value for name, value in definition["fields"].items()},
            )
        )
    print(f"  Created {len(TASKS)} tasks")

    print("\nDemo project seeded successfully!")
    print(f"Project ID: {project.id}")


async def main() -> None:
    """Main entry point."""
    print("Seeding demo project...")
    print("-" * 50)

    await create_tables(engine)
    async with async_session_factory() as db:
        try:
            await seed_demo_project(db)
        except Exception as e:
            print(f"Error seeding demo project: {e}")
            await db.rollback()
            raise
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
