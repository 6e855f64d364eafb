# tests/test_archivist_service.py

"""Tests for Archivist chat turns"""

# Third party imports
import pytest

# Local imports
from continuity.domain.entities import ComicRecord
from continuity.domain.entities import LibrarianMessage
from continuity.domain.entities import ReadingContext
from continuity.domain.entities import ReadState
from continuity.services.archivist_service import EMPTY_REPLY_MESSAGE
from continuity.services.archivist_service import NOT_CONFIGURED_MESSAGE
from continuity.services.archivist_service import RECOMMENDATIONS_FALLBACK
from continuity.services.archivist_service import STATS_FALLBACK
from continuity.services.archivist_service import UNAVAILABLE_MESSAGE
from continuity.services.archivist_service import ArchivistService
from continuity.services.archivist_service import format_transcript
from continuity.services.conversation_service import ConversationService
from continuity.services.enrichment import EnrichmentService


SAGA_REPLY = (
    "You loved Y: The Last Man, so try **Saga**.\n\n"
    "RECOMMENDATIONS:\n"
    '{"comics": [{"title": "Saga", "writer": "Brian K. Vaughan"}, {"title": "Paper Girls"}]}'
)


@pytest.fixture
def conversations(kv_store):
    return ConversationService(kv_store)


@pytest.fixture
def make_archivist(fake_llm, fake_search, result_cache, conversations):
    def build(reply="", error=None, configured=True, results=None):
        llm = fake_llm(reply=reply, error=error, configured=configured)
        search = fake_search(results or [])
        enrichment = EnrichmentService(search, result_cache, batch_delay=0)
        return ArchivistService(llm, enrichment, conversations)

    return build


def collection():
    return [
        ComicRecord(
            id="cv-1",
            title="Y: The Last Man #1",
            writer="Brian K. Vaughan",
            artist="Pia Guerra",
            year=2002,
            rating=5,
            read_states={ReadState.READ},
        )
    ]


class TestFormatTranscript:
    """Prior turns inlined into the prompt"""

    def test_roles_labelled(self):
        """User and assistant turns get their speaker labels"""
        history = [
            LibrarianMessage(id="1", role="user", content="Hi", timestamp=1),
            LibrarianMessage(id="2", role="assistant", content="Hello", timestamp=2),
        ]
        assert format_transcript(history) == "User: Hi\n\nArchivist: Hello\n\n"

    def test_empty(self):
        """No history gives an empty transcript"""
        assert format_transcript([]) == ""


class TestChat:
    """Single completions with friendly fallbacks"""

    async def test_not_configured(self, make_archivist):
        """Missing credentials give the setup message"""
        archivist = make_archivist(configured=False)
        assert await archivist.chat("Hi", ReadingContext()) == NOT_CONFIGURED_MESSAGE
        assert archivist.llm.prompts == []

    async def test_provider_error(self, make_archivist, llm_error):
        """Provider failures give the unavailable message"""
        archivist = make_archivist(error=llm_error)
        assert await archivist.chat("Hi", ReadingContext()) == UNAVAILABLE_MESSAGE

    async def test_empty_reply(self, make_archivist):
        """An empty completion gives the silent-archives message"""
        assert await make_archivist(reply="").chat("Hi", ReadingContext()) == EMPTY_REPLY_MESSAGE

    async def test_prompt_contents(self, make_archivist):
        """Context, history and the message all reach the provider"""
        archivist = make_archivist(reply="Sure")
        history = [LibrarianMessage(id="1", role="user", content="Earlier question", timestamp=1)]
        context = ReadingContext(collection_size=7, favorite_creators=["Alan Moore"])
        await archivist.chat("Anything {curly}?", context, history)

        prompt = archivist.llm.prompts[0]
        assert "Collection size: 7 comics" in prompt
        assert "Favorite creators: Alan Moore" in prompt
        assert "User: Earlier question" in prompt
        assert prompt.endswith("User: Anything {curly}?\n\nArchivist:")
        assert archivist.llm.calls[0] == {"temperature": 0.9, "max_output_tokens": 1024}


class TestQuickRequests:
    """Recommendations and stats summaries outside a conversation"""

    async def test_recommendations_default_query(self, make_archivist):
        """Without a query a default question is asked"""
        archivist = make_archivist(reply="Read Saga")
        assert await archivist.get_recommendations(ReadingContext()) == "Read Saga"
        assert "what should I read next?" in archivist.llm.prompts[0]

    async def test_recommendations_fallback(self, make_archivist, llm_error):
        """Provider failures give the recommendations fallback"""
        archivist = make_archivist(error=llm_error)
        assert await archivist.get_recommendations(ReadingContext(), "horror") == RECOMMENDATIONS_FALLBACK

    async def test_stats_fallback_on_empty(self, make_archivist):
        """An empty reply gives the stats fallback"""
        assert await make_archivist(reply="").get_stats_summary(ReadingContext()) == STATS_FALLBACK


class TestConverse:
    """A full conversational turn"""

    async def test_turn_persisted_and_enriched(self, make_archivist, conversations):
        """Messages are stored and recommendations resolved in order"""
        saga = ComicRecord(id="cv-9", title="Saga", writer="Brian K. Vaughan", year=2012)
        archivist = make_archivist(reply=SAGA_REPLY, results=[saga])

        reply = await archivist.converse("u1", collection(), "  What next?  ")

        assert reply.message == "You loved Y: The Last Man, so try **Saga**."
        assert [r.record.title for r in reply.recommendations] == ["Saga", "Paper Girls"]
        assert [r.source for r in reply.recommendations] == ["external", "synthesized"]

        stored = await conversations.get_conversation("u1", reply.conversation_id)
        assert [m.role for m in stored.messages] == ["user", "assistant"]
        assert stored.messages[0].content == "What next?"
        assert stored.messages[1].content == reply.message
        assert stored.messages[1].context.collection_size == 1
        assert stored.title == "What next?"

    async def test_history_excludes_current_message(self, make_archivist):
        """Earlier turns appear once and the new message only as the final prompt line"""
        archivist = make_archivist(reply="Hello there")
        first = await archivist.converse("u1", [], "First")
        await archivist.converse("u1", [], "Second", first.conversation_id)

        prompt = archivist.llm.prompts[1]
        assert "User: First\n\nArchivist: Hello there\n\nUser: Second\n\nArchivist:" in prompt
        assert prompt.count("User: Second") == 1

    async def test_no_recommendations_skips_enrichment(self, make_archivist):
        """Plain replies do not search"""
        archivist = make_archivist(reply="Just chatting")
        reply = await archivist.converse("u1", [], "Hi")
        assert reply.recommendations == []
        assert archivist.enrichment.search_service.queries == []

    async def test_unknown_conversation_starts_new(self, make_archivist, conversations):
        """An unknown conversation id falls back to the active conversation"""
        archivist = make_archivist(reply="Hi")
        reply = await archivist.converse("u1", [], "Hello", "conv_missing")
        assert reply.conversation_id != "conv_missing"
        assert await conversations.get_active_conversation_id("u1") == reply.conversation_id

    async def test_fallback_reply_is_stored(self, make_archivist, conversations):
        """Without credentials the setup message is the assistant turn"""
        archivist = make_archivist(configured=False)
        reply = await archivist.converse("u1", [], "Hi")
        assert reply.message == NOT_CONFIGURED_MESSAGE
        stored = await conversations.get_conversation("u1", reply.conversation_id)
        assert stored.messages[-1].content == NOT_CONFIGURED_MESSAGE
