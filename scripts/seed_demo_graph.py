"""
Seed a small demo graph and print what the engine makes of it.

Lectures Plato -> Aristotle -> Augustine (each requires the previous), a
matching concept hierarchy, and one learner who has mastered Plato.
Runs in-process against DATABASE_URL.
"""
import asyncio
import os
import sys
import uuid

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


async def main():
    from lyceum.config import get_settings
    from lyceum.database import async_session_maker, close_db, init_db
    from lyceum.engines.prerequisites import ConceptGraphService, PrerequisiteService
    from lyceum.engines.progress import ProgressService
    from lyceum.kernel.models import EntityType, Lecture, PhilosophicalEntity, User
    from lyceum.logging_config import configure_logging

    settings = get_settings()
    configure_logging(log_level=settings.log_level, environment=settings.environment, debug=settings.debug)
    await init_db()

    async with async_session_maker() as session:
        learner = User(id=uuid.uuid4(), email=f"learner-{uuid.uuid4().hex[:8]}@example.com", full_name="Demo Learner")
        lectures = [
            Lecture(id=uuid.uuid4(), title=title, category="Ancient & Medieval", order=i)
            for i, title in enumerate(["Plato", "Aristotle", "Augustine"], start=1)
        ]
        plato, aristotle, augustine = lectures
        concepts = [
            PhilosophicalEntity(id=uuid.uuid4(), type=EntityType.CONCEPT.value, name=name)
            for name in ["Theory of Forms", "Hylomorphism", "Divine Illumination"]
        ]
        session.add(learner)
        session.add_all(lectures + concepts)
        await session.commit()

        prerequisites = PrerequisiteService(session)
        await prerequisites.add_prerequisite(aristotle.id, plato.id, required=True, importance=5)
        await prerequisites.add_prerequisite(augustine.id, aristotle.id, required=True, importance=4)

        check = await prerequisites.check_cycle(plato.id, augustine.id)
        print(f"Plato requires Augustine would cycle: {check.has_cycle}")
        print(f"  {check.description}")

        concepts_service = ConceptGraphService(session)
        await concepts_service.add_relation(concepts[0].id, concepts[1].id, ["HIERARCHICAL"])
        await concepts_service.add_relation(concepts[1].id, concepts[2].id, ["HIERARCHICAL", "DEVELOPMENT"])
        path = await concepts_service.build_learning_path(concepts[2].id)
        print("Learning path to Divine Illumination:")
        for step, node in enumerate(path, start=1):
            print(f"  {step}. {node.label}")

        progress = ProgressService(session)
        await progress.start_lecture(learner.id, plato.id)
        await progress.mark_viewed(learner.id, plato.id)
        await progress.submit_initial_reflection(learner.id, plato.id)
        await progress.begin_mastery_test(learner.id, plato.id)
        await progress.record_mastery_score(learner.id, plato.id, 85)
        await session.commit()

        for item in await prerequisites.list_availability(learner.id):
            print(f"{item.node.label:<10} {item.status.value:<12} readiness={item.score}")

    await close_db()


if __name__ == "__main__":
    asyncio.run(main())
