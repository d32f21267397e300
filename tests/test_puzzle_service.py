import asyncio
import gc

import pytest

from src.domain.errors import (
    ConcurrencyConflict,
    DuplicateSubmission,
    EmptyWord,
    LettersUnavailable,
    NoActivePuzzle,
    NotInDictionary,
)
from src.services.wordlist import WordList

from conftest import POOL

KEY = "session-abc"


@pytest.mark.asyncio
async def test_create_puzzle_is_idempotent_while_active(make_service):
    service = make_service(POOL, "EEEEEEEEEEEEEE")

    first = await service.create_puzzle(KEY)
    second = await service.create_puzzle(KEY)

    assert first.puzzle_string == POOL
    assert second.puzzle_string == POOL
    assert second.session_id == first.session_id
    assert first.is_active
    assert first.remaining_letters == POOL
    assert first.total_score == 0


@pytest.mark.asyncio
async def test_sessions_are_independent_per_key(make_service):
    service = make_service(POOL, "EEEEEEEEEEEEEE")

    a = await service.create_puzzle("a")
    b = await service.create_puzzle("b")

    assert a.session_id != b.session_id
    assert b.puzzle_string == "EEEEEEEEEEEEEE"


@pytest.mark.asyncio
async def test_submit_cat_then_duplicate(make_service):
    service = make_service()
    await service.create_puzzle(KEY)

    result = await service.submit_word(KEY, "cat")

    assert result.word == "CAT"
    assert result.score == 3
    assert result.total_score == 3
    assert result.remaining_letters == "SHEDRINOLMU"
    assert result.puzzle_string == POOL
    assert not result.is_complete

    with pytest.raises(DuplicateSubmission):
        await service.submit_word(KEY, "CAT")


@pytest.mark.asyncio
async def test_state_reflects_submissions(make_service):
    service = make_service()
    await service.create_puzzle(KEY)
    await service.submit_word(KEY, "CAT")
    await service.submit_word(KEY, "SHED")

    state = await service.get_puzzle_state(KEY)

    assert state.total_score == 7
    assert state.remaining_letters == "RINOLMU"
    assert [(s.word, s.score) for s in state.submissions] == [("CAT", 3), ("SHED", 4)]
    assert state.submissions[0].submitted_at <= state.submissions[1].submitted_at


@pytest.mark.asyncio
async def test_rejected_submission_changes_nothing(make_service, sessions_repo):
    service = make_service()
    await service.create_puzzle(KEY)
    await service.submit_word(KEY, "CAT")
    before = await sessions_repo.get_current(KEY)

    for word, error in (("", EmptyWord), ("TACO", NotInDictionary), ("ACT", LettersUnavailable)):
        with pytest.raises(error):
            await service.submit_word(KEY, word)

    after = await sessions_repo.get_current(KEY)
    assert str(after.remaining) == str(before.remaining)
    assert after.submissions == before.submissions
    assert after.version == before.version
    assert [e.word for e in await service.get_leaderboard()] == ["CAT"]


@pytest.mark.asyncio
async def test_no_puzzle_errors(make_service):
    service = make_service()

    with pytest.raises(NoActivePuzzle):
        await service.submit_word(KEY, "CAT")
    with pytest.raises(NoActivePuzzle):
        await service.get_puzzle_state(KEY)
    with pytest.raises(NoActivePuzzle):
        await service.end_game(KEY)


@pytest.mark.asyncio
async def test_completion_deactivates_session(make_service):
    service = make_service("CATZZZZZZZZZZZ", words=WordList.from_words(["CAT"]))
    await service.create_puzzle(KEY)

    result = await service.submit_word(KEY, "CAT")

    assert result.is_complete
    assert result.remaining_letters == "Z" * 11
    with pytest.raises(NoActivePuzzle):
        await service.submit_word(KEY, "CAT")
    with pytest.raises(NoActivePuzzle):
        await service.get_puzzle_state(KEY)

    finished = await service.get_puzzle_state(KEY, include_finished=True)
    assert not finished.is_active
    assert finished.total_score == 3


@pytest.mark.asyncio
async def test_end_game_lists_every_remaining_word(make_service, wordlist):
    service = make_service()
    await service.create_puzzle(KEY)
    await service.submit_word(KEY, "CAT")

    result = await service.end_game(KEY)

    assert result.total_score == 3
    assert result.remaining_words == wordlist.remaining_words("SHEDRINOLMU")
    assert "SHED" in result.remaining_words
    assert "CAT" not in result.remaining_words
    with pytest.raises(NoActivePuzzle):
        await service.end_game(KEY)


@pytest.mark.asyncio
async def test_new_puzzle_after_finish_gets_fresh_pool(make_service):
    service = make_service(POOL, "EEEEEEEEEEEEEE")
    first = await service.create_puzzle(KEY)
    await service.end_game(KEY)

    second = await service.create_puzzle(KEY)

    assert second.session_id != first.session_id
    assert second.puzzle_string == "EEEEEEEEEEEEEE"
    assert second.is_active
    assert second.submissions == ()


@pytest.mark.asyncio
async def test_concurrent_anagrams_only_one_wins(make_service):
    service = make_service()
    await service.create_puzzle(KEY)

    results = await asyncio.gather(
        service.submit_word(KEY, "CAT"),
        service.submit_word(KEY, "ACT"),
        return_exceptions=True,
    )

    accepted = [r for r in results if not isinstance(r, Exception)]
    rejected = [r for r in results if isinstance(r, Exception)]
    assert len(accepted) == 1
    assert len(rejected) == 1
    assert isinstance(rejected[0], LettersUnavailable)

    state = await service.get_puzzle_state(KEY)
    assert state.remaining_letters == "SHEDRINOLMU"
    assert state.total_score == 3


@pytest.mark.asyncio
async def test_session_locks_are_released_when_idle(make_service):
    service = make_service()
    keys = [f"player-{i}" for i in range(20)]
    for key in keys:
        await service.create_puzzle(key)
        await service.submit_word(key, "CAT")
    await service.end_game(keys[0])

    gc.collect()
    assert len(service._session_locks) == 0

    # While held, every caller for the key gets the same lock.
    lock = service._lock_for_session(KEY)
    async with lock:
        assert service._lock_for_session(KEY) is lock
    del lock
    gc.collect()
    assert KEY not in service._session_locks


@pytest.mark.asyncio
async def test_leaderboard_collects_words_across_sessions(make_service):
    service = make_service()
    for key in ("a", "b", "c"):
        await service.create_puzzle(key)

    await service.submit_word("a", "CAT")
    await service.submit_word("b", "CHAIR")
    await service.submit_word("c", "CAT")

    board = await service.get_leaderboard()
    assert [(e.word, e.score) for e in board] == [("CHAIR", 5), ("CAT", 3)]


@pytest.mark.asyncio
async def test_stale_session_write_is_rejected(make_service, sessions_repo):
    service = make_service()
    await service.create_puzzle(KEY)

    stale = await sessions_repo.get_current(KEY)
    await service.submit_word(KEY, "CAT")

    stale.deactivate()
    with pytest.raises(ConcurrencyConflict):
        await sessions_repo.save_status(stale)

    assert (await service.get_puzzle_state(KEY)).is_active


@pytest.mark.asyncio
async def test_submit_retries_after_conflict(make_service, sessions_repo, monkeypatch):
    service = make_service()
    await service.create_puzzle(KEY)

    real_save = sessions_repo.save_submission
    calls = []

    async def flaky_save(session, submission):
        calls.append(submission.word)
        if len(calls) == 1:
            raise ConcurrencyConflict("simulated")
        return await real_save(session, submission)

    monkeypatch.setattr(sessions_repo, "save_submission", flaky_save)

    result = await service.submit_word(KEY, "CAT")

    assert calls == ["CAT", "CAT"]
    assert result.total_score == 3
    assert (await service.get_puzzle_state(KEY)).remaining_letters == "SHEDRINOLMU"


@pytest.mark.asyncio
async def test_submit_surfaces_conflict_after_retries(make_service, sessions_repo, monkeypatch):
    service = make_service()
    await service.create_puzzle(KEY)

    async def always_conflict(session, submission):
        raise ConcurrencyConflict("simulated")

    monkeypatch.setattr(sessions_repo, "save_submission", always_conflict)

    with pytest.raises(ConcurrencyConflict):
        await service.submit_word(KEY, "CAT")

    assert (await service.get_puzzle_state(KEY)).total_score == 0
