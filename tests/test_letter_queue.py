import asyncio

import pytest

from letterstream.errors import DocumentNameConflict, DuplicateSkipped
from letterstream.letter_queue import LetterQueue, MemoryQueueStorage
from letterstream.persistence import SqliteQueueStorage


@pytest.fixture(params=["memory", "sqlite"])
def queue(request, tmp_path):
    if request.param == "memory":
        return LetterQueue(MemoryQueueStorage())
    return LetterQueue(SqliteQueueStorage(str(tmp_path / "queue.db")))


@pytest.mark.asyncio
async def test_enqueue_and_drain_preserves_order(queue, make_letter):
    first = make_letter("1001")
    second = make_letter("1002")

    assert await queue.enqueue(first) == 1
    assert await queue.enqueue(second) == 2
    assert await queue.count() == 2

    drained = await queue.drain()
    assert [letter.unique_doc_id for letter in drained] == ["1001", "1002"]
    assert drained == [first, second]
    assert await queue.count() == 0
    assert await queue.cumulative_file_size() == 0


@pytest.mark.asyncio
async def test_drain_empty_queue(queue):
    assert await queue.drain() == []
    assert await queue.drain() == []


@pytest.mark.asyncio
async def test_cumulative_file_size(queue, make_letter, make_pdf):
    await queue.enqueue(make_letter("1", pdf=make_pdf("a.pdf", size=100)))
    await queue.enqueue(make_letter("2", pdf=make_pdf("b.pdf", size=250)))
    assert await queue.cumulative_file_size() == 350


@pytest.mark.asyncio
async def test_duplicate_id_rejected(queue, make_letter):
    await queue.enqueue(make_letter("1001"))
    with pytest.raises(DuplicateSkipped):
        await queue.enqueue(make_letter("1001"))
    assert await queue.count() == 1
    assert await queue.contains("1001")
    assert not await queue.contains("1002")


@pytest.mark.asyncio
async def test_same_basename_from_other_directory_rejected(queue, make_letter, make_pdf):
    jan = make_pdf("invoice.pdf", subdir="jan")
    feb = make_pdf("invoice.pdf", subdir="feb")
    await queue.enqueue(make_letter("1", pdf=jan))

    with pytest.raises(DocumentNameConflict) as exc_info:
        await queue.enqueue(make_letter("2", pdf=feb))
    assert exc_info.value.queued_path == str(jan)
    assert await queue.count() == 1

    assert await queue.enqueue(make_letter("3", pdf=jan)) == 2
    assert await queue.document_path_for("invoice.pdf") == str(jan)
    assert await queue.document_path_for("other.pdf") is None


@pytest.mark.asyncio
async def test_id_reusable_after_drain(queue, make_letter):
    await queue.enqueue(make_letter("1001"))
    await queue.drain()
    assert await queue.enqueue(make_letter("1001")) == 1


@pytest.mark.asyncio
async def test_concurrent_enqueue_and_drain_lose_nothing(queue, make_letter, make_pdf):
    pdf = make_pdf("shared.pdf")
    letters = [make_letter(str(i), pdf=pdf) for i in range(20)]
    drained = []

    async def producer():
        for letter in letters:
            await queue.enqueue(letter)
            await asyncio.sleep(0)

    async def consumer():
        for _ in range(10):
            drained.extend(await queue.drain())
            await asyncio.sleep(0)

    await asyncio.gather(producer(), consumer())
    drained.extend(await queue.drain())
    assert [letter.unique_doc_id for letter in drained] == [str(i) for i in range(20)]
