import pytest

from conftest import make_message, make_private_message
from services.indexer_service import MediaIndexer, derive_title, is_video_like


class TestTitleDerivation:
    def test_caption_wins(self):
        msg = make_message(is_video=True, caption="  Lesson   One ", file_name="ignored.mp4")
        assert derive_title(msg) == "Lesson One"

    def test_file_name_fallback_strips_last_extension(self):
        msg = make_message(is_video=True, file_name="algebra-basics.mp4")
        assert derive_title(msg) == "algebra-basics"

    def test_nothing_to_derive(self):
        assert derive_title(make_message(is_video=True, caption="   ")) == ""

    def test_video_like(self):
        assert is_video_like(make_message(is_video=True))
        assert is_video_like(make_message(mime_type="video/x-matroska"))
        assert not is_video_like(make_message(mime_type="application/pdf"))
        assert not is_video_like(make_message(is_animation=True))
        assert is_video_like(make_message(is_animation=True), include_edit_types=True)
        assert is_video_like(make_message(is_video_note=True), include_edit_types=True)


@pytest.mark.asyncio
class TestMediaIndexer:
    async def test_indexes_group_video_by_file_name(self, media_repo):
        indexer = MediaIndexer(media_repo)
        msg = make_message(is_video=True, file_name="algebra-basics.mp4", message_id=31)

        assert await indexer.index(msg) == "algebra-basics"
        hit = await media_repo.get_exact("-1001", "algebra-basics")
        assert hit.message_id == 31
        assert hit.chat_title == "Algebra Group"

    async def test_document_with_video_mime_is_indexed(self, media_repo):
        indexer = MediaIndexer(media_repo)
        msg = make_message(mime_type="video/mp4", caption="Geometry 1", message_id=5)
        assert await indexer.index(msg) == "Geometry 1"

    async def test_private_chat_is_ignored(self, media_repo):
        indexer = MediaIndexer(media_repo)
        msg = make_private_message(is_video=True, caption="Lesson")
        assert await indexer.index(msg) is None
        assert await media_repo.count_media("42") == 0

    async def test_untitled_video_is_ignored(self, media_repo):
        indexer = MediaIndexer(media_repo)
        assert await indexer.index(make_message(is_video=True)) is None
        assert await media_repo.count_media("-1001") == 0

    async def test_gif_with_video_mime_is_indexed(self, media_repo):
        indexer = MediaIndexer(media_repo)
        msg = make_message(is_animation=True, mime_type="video/mp4", caption="Loop", message_id=3)
        assert await indexer.index(msg) == "Loop"

        edited = make_message(is_animation=True, mime_type="video/mp4", caption="Loop 2", message_id=3, is_edit=True)
        assert await indexer.index_edit(edited) == "Loop 2"

    async def test_edit_with_new_caption_adds_record(self, media_repo):
        indexer = MediaIndexer(media_repo)
        await indexer.index(make_message(is_video=True, caption="Draft", message_id=8))
        await indexer.index_edit(make_message(is_video=True, caption="Final", message_id=8, is_edit=True))

        assert await media_repo.count_media("-1001") == 2
        assert (await media_repo.get_exact("-1001", "final")).message_id == 8

    async def test_storage_failure_is_swallowed(self, media_repo, db):
        from sqlalchemy import text
        async with db.engine.begin() as conn:
            await conn.execute(text("DROP TABLE media_records"))

        indexer = MediaIndexer(media_repo)
        assert await indexer.index(make_message(is_video=True, caption="Lost")) is None
