"""Tests for create_runtime wiring and shutdown."""

import json

import pytest

from cultivator.agents.judgment import StaticJudgmentProvider
from cultivator.config.settings import Settings
from cultivator.quality.maturity import MaturityLevel
from cultivator.quality.models import QualityDimension
from cultivator.repositories.notes import InMemoryNoteRepository
from cultivator.runtime import create_runtime

NOTE = "zettel/spaced-repetition.md"

JUDGMENT = json.dumps(
    {
        "dimensions": {
            d: {"score": 75, "feedback": f"{d} ok"}
            for d in ("atomicity", "connectivity", "clarity", "evidence", "originality")
        }
    }
)


def _settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


class TestCreateRuntime:
    @pytest.mark.anyio
    async def test_default_provider_selected(self, notes: InMemoryNoteRepository) -> None:
        first = StaticJudgmentProvider(name="first")
        claude = StaticJudgmentProvider(name="claude")
        runtime = await create_runtime(
            _settings(HISTORY_ENABLED=False),
            repository=notes,
            providers=[first, claude],
        )
        assert runtime.providers.current() is claude
        assert runtime.history is None
        assert runtime.engine is None
        await runtime.shutdown()
        assert runtime.providers.names() == []

    @pytest.mark.anyio
    async def test_unknown_default_keeps_first(self, notes: InMemoryNoteRepository) -> None:
        first = StaticJudgmentProvider(name="first")
        runtime = await create_runtime(
            _settings(HISTORY_ENABLED=False, DEFAULT_PROVIDER="missing"),
            repository=notes,
            providers=[first],
        )
        assert runtime.providers.current() is first
        await runtime.shutdown()

    @pytest.mark.anyio
    async def test_injected_history_callbacks(self, notes: InMemoryNoteRepository) -> None:
        saved = {}

        async def load():
            return None

        async def save(history):
            saved.update(history)

        runtime = await create_runtime(
            _settings(HISTORY_MAX_PER_NOTE=3),
            repository=notes,
            providers=[StaticJudgmentProvider(name="claude", assessment_response=JUDGMENT)],
            load_history=load,
            save_history=save,
        )
        assert runtime.engine is None
        assert runtime.history.max_per_note == 3

        outcome = await runtime.assessments.assess(NOTE)
        assert outcome.assessment.quality_score.total_score == 75
        assert NOTE in saved
        await runtime.shutdown()

    @pytest.mark.anyio
    async def test_sql_history_persists_across_runtimes(
        self, notes: InMemoryNoteRepository, tmp_path
    ) -> None:
        settings = _settings(DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'history.db'}")
        provider = StaticJudgmentProvider(name="claude", assessment_response=JUDGMENT)

        runtime = await create_runtime(settings, repository=notes, providers=[provider])
        assert runtime.engine is not None
        await runtime.assessments.assess(NOTE)
        await runtime.shutdown()
        assert runtime.engine is None

        provider = StaticJudgmentProvider(name="claude", assessment_response=JUDGMENT)
        runtime = await create_runtime(settings, repository=notes, providers=[provider])
        outcome = await runtime.assessments.assess(NOTE)
        assert outcome.delta is not None
        assert outcome.delta.total_delta == 0
        assert len(runtime.history.get_history(NOTE)) == 2
        await runtime.shutdown()

    @pytest.mark.anyio
    async def test_services_share_settings(self, notes: InMemoryNoteRepository) -> None:
        runtime = await create_runtime(
            _settings(HISTORY_ENABLED=False, WRITE_CALLOUT=True),
            repository=notes,
            providers=[StaticJudgmentProvider(name="claude", assessment_response=JUDGMENT)],
        )
        await runtime.assessments.assess(NOTE)
        note = await notes.get_by_path(NOTE)
        assert "[!cultivator]" in note.content
        await runtime.shutdown()

    @pytest.mark.anyio
    async def test_frontmatter_key_used_for_stage_writes(
        self, notes: InMemoryNoteRepository
    ) -> None:
        runtime = await create_runtime(
            _settings(HISTORY_ENABLED=False, FRONTMATTER_KEY="maturity"),
            repository=notes,
        )
        result = await runtime.maturity.update(
            NOTE, current=MaturityLevel.SEED, target=MaturityLevel.SPROUT
        )
        assert result.success
        frontmatter = (await notes.get_by_path(NOTE)).metadata.to_frontmatter()
        assert frontmatter["maturity"] == "sprout"
        assert "growth-stage" not in frontmatter
        await runtime.shutdown()

    @pytest.mark.anyio
    async def test_connection_and_improvement_services(
        self, notes: InMemoryNoteRepository
    ) -> None:
        provider = StaticJudgmentProvider(
            name="claude",
            connection_response=json.dumps(
                {"connections": [{"targetNote": "Testing effect"}, {"targetNote": "Ghost"}]}
            ),
            dimension_improvement_response=json.dumps(
                {"actions": [{"action": "Cite the study.", "expectedImpact": "Evidence +20"}]}
            ),
        )
        runtime = await create_runtime(
            _settings(HISTORY_ENABLED=False), repository=notes, providers=[provider]
        )
        connections = await runtime.connections.suggest(NOTE)
        assert [s.target_note for s in connections.suggestions] == ["Testing effect"]

        note = await notes.get_by_path(NOTE)
        improvement = await runtime.improvements.improve(
            note, dimension=QualityDimension.EVIDENCE, current_score=50
        )
        assert [a.action for a in improvement.actions] == ["Cite the study."]
        await runtime.shutdown()

    @pytest.mark.anyio
    async def test_connections_follow_setting(self, notes: InMemoryNoteRepository) -> None:
        runtime = await create_runtime(
            _settings(HISTORY_ENABLED=False, ENABLE_CONNECTION_SUGGESTIONS=False),
            repository=notes,
        )
        outcome = await runtime.connections.suggest(NOTE)
        assert "disabled" in outcome.error
        await runtime.shutdown()
