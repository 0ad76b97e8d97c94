"""
Integration tests for the DB-backed prerequisite and concept graph services.
"""

import asyncio
import uuid

import pytest
from sqlalchemy import func, select

from lyceum.engines.graph.availability import AvailabilityStatus
from lyceum.engines.prerequisites.concept_service import ConceptGraphService, normalize_relation_types
from lyceum.engines.prerequisites.prerequisite_service import PrerequisiteService
from lyceum.kernel.errors import CircularDependencyError, ConflictError, NotFoundError, ValidationError
from lyceum.kernel.models import EventLog, EventType, LecturePrerequisite, PhilosophicalRelation, WorkflowStatus


async def edge_count(session) -> int:
    return (await session.execute(select(func.count()).select_from(LecturePrerequisite))).scalar_one()


class TestAddPrerequisite:
    """Edge insertion with validation, duplicate and cycle checks."""

    @pytest.mark.asyncio
    async def test_add_with_defaults(self, db_session, make_lecture):
        """A new edge is required with importance 3 unless told otherwise."""
        plato = await make_lecture("Plato")
        aristotle = await make_lecture("Aristotle")

        edge = await PrerequisiteService(db_session).add_prerequisite(aristotle, plato)

        assert edge.lecture_id == aristotle
        assert edge.prerequisite_lecture_id == plato
        assert edge.is_required is True
        assert edge.importance_level == 3

    @pytest.mark.asyncio
    async def test_add_logs_event(self, db_session, make_lecture):
        plato = await make_lecture("Plato")
        aristotle = await make_lecture("Aristotle")
        edge = await PrerequisiteService(db_session).add_prerequisite(
            aristotle, plato, required=False, importance=5
        )
        edge_id = str(edge.id)

        events = (
            await db_session.execute(
                select(EventLog).where(EventLog.event_type == EventType.PREREQUISITE_ADDED.value)
            )
        ).scalars().all()
        assert len(events) == 1
        assert events[0].entity_id == aristotle
        assert events[0].payload["edge_id"] == edge_id
        assert events[0].payload["importance_level"] == 5
        assert events[0].payload["is_required"] is False

    @pytest.mark.asyncio
    async def test_duplicate_reports_existing_id(self, db_session, make_lecture):
        plato = await make_lecture("Plato")
        aristotle = await make_lecture("Aristotle")
        service = PrerequisiteService(db_session)
        first = await service.add_prerequisite(aristotle, plato)
        first_id = str(first.id)

        with pytest.raises(ConflictError) as exc_info:
            await service.add_prerequisite(aristotle, plato, required=False)

        assert exc_info.value.existing_id == first_id
        assert exc_info.value.status_code == 409
        assert await edge_count(db_session) == 1

    @pytest.mark.asyncio
    async def test_cycle_rejected_with_labeled_path(self, db_session, philosophy):
        """Plato requires Augustine would close Augustine -> Aristotle -> Plato."""
        with pytest.raises(CircularDependencyError) as exc_info:
            await PrerequisiteService(db_session).add_prerequisite(philosophy.plato, philosophy.augustine)

        assert exc_info.value.path == [
            f"Augustine ({philosophy.augustine})",
            f"Aristotle ({philosophy.aristotle})",
            f"Plato ({philosophy.plato})",
        ]
        assert exc_info.value.status_code == 400
        assert "Augustine" in exc_info.value.to_dict()["description"]
        assert await edge_count(db_session) == 2

    @pytest.mark.asyncio
    async def test_cycle_through_direct_and_indirect_edges(self, db_session, philosophy):
        """With Augustine requiring Plato directly too, the reverse edge is still refused."""
        service = PrerequisiteService(db_session)
        await service.add_prerequisite(philosophy.augustine, philosophy.plato)

        with pytest.raises(CircularDependencyError) as exc_info:
            await service.add_prerequisite(philosophy.plato, philosophy.augustine)

        path = exc_info.value.path
        assert path[0].startswith("Augustine")
        assert path[-1].startswith("Plato")
        assert await edge_count(db_session) == 3

    @pytest.mark.asyncio
    async def test_self_reference(self, db_session, make_lecture):
        plato = await make_lecture("Plato")
        with pytest.raises(ValidationError) as exc_info:
            await PrerequisiteService(db_session).add_prerequisite(plato, plato)
        assert "prerequisite_lecture_id" in exc_info.value.invalid_fields

    @pytest.mark.asyncio
    async def test_missing_ids(self, db_session):
        with pytest.raises(ValidationError) as exc_info:
            await PrerequisiteService(db_session).add_prerequisite(None, None)
        assert set(exc_info.value.invalid_fields) == {"lecture_id", "prerequisite_lecture_id"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("importance", [0, 6, -1, "3", 2.5, True])
    async def test_bad_importance(self, db_session, make_lecture, importance):
        plato = await make_lecture("Plato")
        aristotle = await make_lecture("Aristotle")
        with pytest.raises(ValidationError):
            await PrerequisiteService(db_session).add_prerequisite(aristotle, plato, importance=importance)
        assert await edge_count(db_session) == 0

    @pytest.mark.asyncio
    async def test_unknown_lectures(self, db_session, make_lecture):
        plato = await make_lecture("Plato")
        service = PrerequisiteService(db_session)

        with pytest.raises(NotFoundError, match="^Lecture not found$"):
            await service.add_prerequisite(uuid.uuid4(), plato)
        with pytest.raises(NotFoundError, match="Prerequisite lecture not found"):
            await service.add_prerequisite(plato, uuid.uuid4())

    @pytest.mark.asyncio
    async def test_concurrent_reverse_edges(self, session_maker, make_lecture):
        """Two writers proposing X->Y and Y->X at once: exactly one wins."""
        x = await make_lecture("X")
        y = await make_lecture("Y")

        async def add(dependent, prerequisite):
            async with session_maker() as session:
                edge = await PrerequisiteService(session).add_prerequisite(dependent, prerequisite)
                return edge.id

        results = await asyncio.gather(add(x, y), add(y, x), return_exceptions=True)

        succeeded = [r for r in results if isinstance(r, uuid.UUID)]
        failed = [r for r in results if isinstance(r, CircularDependencyError)]
        assert len(succeeded) == 1
        assert len(failed) == 1

        async with session_maker() as session:
            assert await edge_count(session) == 1


class TestCheckCycle:
    """Read-only cycle check between two lectures."""

    @pytest.mark.asyncio
    async def test_no_cycle(self, db_session, philosophy):
        result = await PrerequisiteService(db_session).check_cycle(philosophy.augustine, philosophy.plato)
        assert result.has_cycle is False
        assert result.path == []

    @pytest.mark.asyncio
    async def test_cycle(self, db_session, philosophy):
        result = await PrerequisiteService(db_session).check_cycle(philosophy.plato, philosophy.aristotle)
        assert result.has_cycle is True
        assert result.path == [f"Aristotle ({philosophy.aristotle})", f"Plato ({philosophy.plato})"]

    @pytest.mark.asyncio
    async def test_unknown_lectures(self, db_session, philosophy):
        service = PrerequisiteService(db_session)
        with pytest.raises(NotFoundError, match="Lecture not found"):
            await service.check_cycle(uuid.uuid4(), philosophy.plato)
        with pytest.raises(NotFoundError, match="Lecture not found"):
            await service.check_cycle(philosophy.plato, uuid.uuid4())


class TestEditAndList:
    """Update, remove and listing of edges."""

    @pytest.mark.asyncio
    async def test_list_orders_required_then_importance(self, db_session, make_lecture, make_edge):
        target = await make_lecture("Target")
        low = await make_lecture("Low")
        high = await make_lecture("High")
        optional = await make_lecture("Optional")
        await make_edge(target, optional, required=False, importance=5)
        await make_edge(target, low, importance=1)
        await make_edge(target, high, importance=4)

        rows = await PrerequisiteService(db_session).list_prerequisites(target)
        assert [r.prerequisite_lecture_id for r in rows] == [high, low, optional]

    @pytest.mark.asyncio
    async def test_list_dependents(self, db_session, philosophy):
        rows = await PrerequisiteService(db_session).list_dependents(philosophy.plato)
        assert [r.lecture_id for r in rows] == [philosophy.aristotle]

    @pytest.mark.asyncio
    async def test_list_unknown_lecture(self, db_session):
        with pytest.raises(NotFoundError):
            await PrerequisiteService(db_session).list_prerequisites(uuid.uuid4())

    @pytest.mark.asyncio
    async def test_update(self, db_session, philosophy, make_edge, make_lecture):
        socrates = await make_lecture("Socrates")
        edge_id = await make_edge(philosophy.plato, socrates)
        service = PrerequisiteService(db_session)

        edge = await service.update_prerequisite(edge_id, required=False, importance=2)

        assert edge.is_required is False
        assert edge.importance_level == 2

    @pytest.mark.asyncio
    async def test_update_validates(self, db_session, philosophy, make_edge, make_lecture):
        socrates = await make_lecture("Socrates")
        edge_id = await make_edge(philosophy.plato, socrates)
        with pytest.raises(ValidationError):
            await PrerequisiteService(db_session).update_prerequisite(edge_id, importance=9)

    @pytest.mark.asyncio
    async def test_remove(self, db_session, make_lecture, make_edge):
        plato = await make_lecture("Plato")
        aristotle = await make_lecture("Aristotle")
        edge_id = await make_edge(aristotle, plato)
        service = PrerequisiteService(db_session)

        await service.remove_prerequisite(edge_id)

        assert await service.list_prerequisites(aristotle) == []

    @pytest.mark.asyncio
    async def test_unknown_edge(self, db_session):
        service = PrerequisiteService(db_session)
        with pytest.raises(NotFoundError, match="Prerequisite not found"):
            await service.update_prerequisite(uuid.uuid4(), required=True)
        with pytest.raises(NotFoundError, match="Prerequisite not found"):
            await service.remove_prerequisite(uuid.uuid4())


class TestLearnerViews:
    """Readiness, availability and suggestions against stored progress."""

    @pytest.mark.asyncio
    async def test_readiness_after_mastering_both(self, db_session, philosophy, set_status):
        await set_status(philosophy.learner, philosophy.plato, WorkflowStatus.MASTERED)
        await set_status(philosophy.learner, philosophy.aristotle, WorkflowStatus.MASTERED)

        result = await PrerequisiteService(db_session).compute_readiness(philosophy.augustine, philosophy.learner)

        assert result.satisfied is True
        assert result.score == 100.0

    @pytest.mark.asyncio
    async def test_readiness_with_aristotle_started(self, db_session, philosophy, set_status):
        await set_status(philosophy.learner, philosophy.plato, WorkflowStatus.MASTERED)
        await set_status(philosophy.learner, philosophy.aristotle, WorkflowStatus.STARTED)

        result = await PrerequisiteService(db_session).compute_readiness(philosophy.augustine, philosophy.learner)

        assert result.satisfied is False
        assert result.score == 30.0
        assert [e.prerequisite_label for e in result.missing_required] == ["Aristotle"]

    @pytest.mark.asyncio
    async def test_readiness_unknown_learner(self, db_session, philosophy):
        with pytest.raises(NotFoundError, match="Learner not found"):
            await PrerequisiteService(db_session).compute_readiness(philosophy.plato, uuid.uuid4())

    @pytest.mark.asyncio
    async def test_availability(self, db_session, philosophy, set_status):
        await set_status(philosophy.learner, philosophy.plato, WorkflowStatus.MASTERED)

        results = await PrerequisiteService(db_session).list_availability(philosophy.learner)

        assert [(r.node.label, r.status) for r in results] == [
            ("Plato", AvailabilityStatus.COMPLETED),
            ("Aristotle", AvailabilityStatus.AVAILABLE),
            ("Augustine", AvailabilityStatus.LOCKED),
        ]

    @pytest.mark.asyncio
    async def test_resolve_single_lecture(self, db_session, philosophy, set_status):
        await set_status(philosophy.learner, philosophy.plato, WorkflowStatus.MASTERED)
        await set_status(philosophy.learner, philosophy.aristotle, WorkflowStatus.WATCHED)
        service = PrerequisiteService(db_session)

        plato = await service.resolve_availability(philosophy.plato, philosophy.learner)
        aristotle = await service.resolve_availability(philosophy.aristotle, philosophy.learner)
        augustine = await service.resolve_availability(philosophy.augustine, philosophy.learner)

        assert plato.status == AvailabilityStatus.COMPLETED
        assert aristotle.status == AvailabilityStatus.IN_PROGRESS
        assert augustine.status == AvailabilityStatus.LOCKED
        assert augustine.node.label == "Augustine"
        assert augustine.score == 30.0

    @pytest.mark.asyncio
    async def test_resolve_single_lecture_available(self, db_session, philosophy, set_status):
        await set_status(philosophy.learner, philosophy.plato, WorkflowStatus.MASTERED)

        result = await PrerequisiteService(db_session).resolve_availability(philosophy.aristotle, philosophy.learner)

        assert result.status == AvailabilityStatus.AVAILABLE
        assert result.is_available is True
        assert result.score == 100.0

    @pytest.mark.asyncio
    async def test_resolve_unknown_lecture_or_learner(self, db_session, philosophy):
        service = PrerequisiteService(db_session)
        with pytest.raises(NotFoundError, match="Lecture not found"):
            await service.resolve_availability(uuid.uuid4(), philosophy.learner)
        with pytest.raises(NotFoundError, match="Learner not found"):
            await service.resolve_availability(philosophy.plato, uuid.uuid4())

    @pytest.mark.asyncio
    async def test_availability_filters(self, db_session, philosophy, set_status):
        await set_status(philosophy.learner, philosophy.plato, WorkflowStatus.WATCHED)
        service = PrerequisiteService(db_session)

        medieval = await service.list_availability(philosophy.learner, category="Medieval")
        assert [r.node.label for r in medieval] == ["Augustine"]

        settled = await service.list_availability(philosophy.learner, include_in_progress=False)
        assert "Plato" not in [r.node.label for r in settled]

    @pytest.mark.asyncio
    async def test_suggestions(self, db_session, philosophy, make_lecture, set_status):
        socrates = await make_lecture("Socrates", "Ancient", 0)
        await set_status(philosophy.learner, philosophy.plato, WorkflowStatus.STARTED)
        service = PrerequisiteService(db_session)

        suggested = await service.suggest_next(philosophy.learner)
        assert [r.node.id for r in suggested] == [str(philosophy.plato), str(socrates)]

        assert len(await service.suggest_next(philosophy.learner, limit=1)) == 1
        with pytest.raises(ValidationError):
            await service.suggest_next(philosophy.learner, limit=-1)


class TestConceptGraph:
    """Learning paths and hierarchical relations between entities."""

    @pytest.mark.asyncio
    async def test_learning_path(self, db_session, make_entity, make_relation):
        forms = await make_entity("Theory of Forms")
        substance = await make_entity("Substance")
        grace = await make_entity("Divine Grace")
        await make_relation(forms, substance)
        await make_relation(substance, grace)

        path = await ConceptGraphService(db_session).build_learning_path(grace)

        assert [n.label for n in path] == ["Theory of Forms", "Substance", "Divine Grace"]

    @pytest.mark.asyncio
    async def test_non_hierarchical_relations_ignored(self, db_session, make_entity, make_relation):
        plato = await make_entity("Plato", "Philosopher")
        aristotle = await make_entity("Aristotle", "Philosopher")
        await make_relation(plato, aristotle, types=("INFLUENCE",))

        path = await ConceptGraphService(db_session).build_learning_path(aristotle)
        assert [n.label for n in path] == ["Aristotle"]

    @pytest.mark.asyncio
    async def test_legacy_cycle_tolerated(self, db_session, make_entity, make_relation):
        a = await make_entity("A")
        b = await make_entity("B")
        await make_relation(a, b)
        await make_relation(b, a)

        path = await ConceptGraphService(db_session).build_learning_path(a)
        assert sorted(n.label for n in path) == ["A", "B"]
        assert path[-1].label == "A"

    @pytest.mark.asyncio
    async def test_unknown_target(self, db_session):
        with pytest.raises(NotFoundError, match="Target concept not found"):
            await ConceptGraphService(db_session).build_learning_path(uuid.uuid4())

    @pytest.mark.asyncio
    async def test_get_prerequisites(self, db_session, make_entity, make_relation):
        forms = await make_entity("Theory of Forms")
        substance = await make_entity("Substance")
        await make_relation(forms, substance)

        nodes = await ConceptGraphService(db_session).get_prerequisites(substance)
        assert [n.id for n in nodes] == [str(forms)]

    @pytest.mark.asyncio
    async def test_add_relation(self, db_session, make_entity):
        forms = await make_entity("Theory of Forms")
        substance = await make_entity("Substance")

        relation = await ConceptGraphService(db_session).add_relation(
            forms, substance, ["hierarchical", "DEVELOPMENT", "HIERARCHICAL"], importance=4
        )

        assert relation.relation_types == ["HIERARCHICAL", "DEVELOPMENT"]
        assert relation.importance == 4

    @pytest.mark.asyncio
    async def test_add_hierarchical_relation_cycle(self, db_session, make_entity, make_relation):
        forms = await make_entity("Theory of Forms")
        substance = await make_entity("Substance")
        await make_relation(forms, substance)

        with pytest.raises(CircularDependencyError) as exc_info:
            await ConceptGraphService(db_session).add_relation(substance, forms, ["HIERARCHICAL"])
        assert exc_info.value.path == [f"Substance ({substance})", f"Theory of Forms ({forms})"]

    @pytest.mark.asyncio
    async def test_add_non_hierarchical_back_edge(self, db_session, make_entity, make_relation):
        """Only hierarchical relations are cycle checked."""
        forms = await make_entity("Theory of Forms")
        substance = await make_entity("Substance")
        await make_relation(forms, substance)

        relation = await ConceptGraphService(db_session).add_relation(substance, forms, ["CRITIQUE"])
        assert relation.relation_types == ["CRITIQUE"]

    @pytest.mark.asyncio
    async def test_duplicate_hierarchical_relation(self, db_session, make_entity):
        forms = await make_entity("Theory of Forms")
        substance = await make_entity("Substance")
        service = ConceptGraphService(db_session)
        first = await service.add_relation(forms, substance, ["HIERARCHICAL"])
        first_id = str(first.id)

        with pytest.raises(ConflictError) as exc_info:
            await service.add_relation(forms, substance, ["HIERARCHICAL", "INFLUENCE"], importance=5)
        assert exc_info.value.existing_id == first_id

        nodes = await service.get_prerequisites(substance)
        assert [n.id for n in nodes] == [str(forms)]
        count = await db_session.scalar(select(func.count()).select_from(PhilosophicalRelation))
        assert count == 1

    @pytest.mark.asyncio
    async def test_non_hierarchical_repeat_allowed(self, db_session, make_entity, make_relation):
        plato = await make_entity("Plato", "Philosopher")
        aristotle = await make_entity("Aristotle", "Philosopher")
        await make_relation(plato, aristotle, types=("INFLUENCE",))

        relation = await ConceptGraphService(db_session).add_relation(plato, aristotle, ["HIERARCHICAL"])
        assert relation.relation_types == ["HIERARCHICAL"]

    @pytest.mark.asyncio
    async def test_add_relation_validation(self, db_session, make_entity):
        forms = await make_entity("Theory of Forms")
        service = ConceptGraphService(db_session)

        with pytest.raises(ValidationError):
            await service.add_relation(forms, forms, ["HIERARCHICAL"])
        with pytest.raises(NotFoundError):
            await service.add_relation(forms, uuid.uuid4(), ["HIERARCHICAL"])

    @pytest.mark.parametrize("types", [[], ["PARENT_OF"], ["HIERARCHICAL", "bogus"]])
    def test_normalize_rejects(self, types):
        with pytest.raises(ValidationError):
            normalize_relation_types(types)
