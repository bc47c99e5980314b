"""Tests for the forbidden word list and content screening."""

import pytest

from discuss_board.core.exceptions import BusinessRuleError, ConflictError, NotFoundError
from discuss_board.services.forbidden_words import (
    ForbiddenWordFilters,
    ForbiddenWordService,
    find_forbidden_word,
)


@pytest.fixture
def word_service(db_session, policy) -> ForbiddenWordService:
    return ForbiddenWordService(db_session, policy)


class TestFindForbiddenWord:
    def test_case_insensitive_substring(self):
        assert find_forbidden_word("Total SCAM here", ["spam", "scam"]) == "scam"

    def test_no_match(self):
        assert find_forbidden_word("All good", ["spam"]) is None

    def test_empty_expressions_ignored(self):
        assert find_forbidden_word("anything", [""]) is None


class TestForbiddenWordService:
    """Tests for managing forbidden expressions."""

    @pytest.mark.asyncio
    async def test_create_and_check(self, word_service):
        await word_service.create(" spam ", "Advertising")

        with pytest.raises(BusinessRuleError) as exc_info:
            await word_service.check_text("Fine title", "Cheap SPAM offers")
        assert exc_info.value.detail == {"expression": "spam"}
        await word_service.check_text("Nothing wrong here")

    @pytest.mark.asyncio
    async def test_duplicate_is_case_insensitive(self, word_service):
        await word_service.create("Spam")
        with pytest.raises(ConflictError):
            await word_service.create("SPAM")

    @pytest.mark.asyncio
    async def test_empty_expression_rejected(self, word_service):
        with pytest.raises(BusinessRuleError):
            await word_service.create("   ")

    @pytest.mark.asyncio
    async def test_deleted_word_no_longer_blocks(self, word_service):
        word = await word_service.create("spam")
        await word_service.delete(word.id)

        await word_service.check_text("spam is allowed again")
        with pytest.raises(NotFoundError):
            await word_service.get(word.id)

    @pytest.mark.asyncio
    async def test_recreate_revives_row(self, word_service):
        word = await word_service.create("spam")
        await word_service.delete(word.id)

        revived = await word_service.create("spam", "Back again")
        assert revived.id == word.id
        assert revived.description == "Back again"

    @pytest.mark.asyncio
    async def test_update(self, word_service):
        spam = await word_service.create("spam")
        await word_service.create("scam")

        updated = await word_service.update(spam.id, expression="junk", description="Renamed")
        assert updated.expression == "junk"
        with pytest.raises(ConflictError):
            await word_service.update(spam.id, expression="SCAM")

    @pytest.mark.asyncio
    async def test_search(self, word_service):
        for expression in ("spam", "spammer", "scam"):
            await word_service.create(expression)

        page = await word_service.search(
            ForbiddenWordFilters(search="spam", sort="expression:asc")
        )
        assert [w.expression for w in page.data] == ["spam", "spammer"]

    @pytest.mark.asyncio
    async def test_search_treats_underscore_literally(self, word_service):
        for expression in ("bad_word", "badxword"):
            await word_service.create(expression)

        page = await word_service.search(ForbiddenWordFilters(search="bad_"))
        assert [w.expression for w in page.data] == ["bad_word"]
