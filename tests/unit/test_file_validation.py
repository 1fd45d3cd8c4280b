"""Tests for chunked upload reading with a size limit."""

from unittest.mock import AsyncMock

import pytest

from app.core.errors import ValidationError
from app.core.file_validation import read_upload_with_limit


class TestReadUploadWithLimit:
    """Tests for read_upload_with_limit."""

    @pytest.mark.asyncio
    async def test_reads_file_in_chunks(self) -> None:
        """Chunks are concatenated until the file is exhausted."""
        mock_file = AsyncMock()
        mock_file.read = AsyncMock(side_effect=[b"A" * 1000, b"B" * 1000, b""])

        result = await read_upload_with_limit(mock_file, 4096)

        assert result == b"A" * 1000 + b"B" * 1000

    @pytest.mark.asyncio
    async def test_file_at_limit_is_accepted(self) -> None:
        """Exactly max_size bytes is allowed."""
        mock_file = AsyncMock()
        mock_file.read = AsyncMock(side_effect=[b"X" * 10, b""])

        assert await read_upload_with_limit(mock_file, 10) == b"X" * 10

    @pytest.mark.asyncio
    async def test_stops_reading_once_over_limit(self) -> None:
        """The read stops at the first chunk past the limit."""
        mock_file = AsyncMock()
        mock_file.read = AsyncMock(side_effect=[b"X" * 6, b"X" * 6, b"X" * 6, b""])

        with pytest.raises(ValidationError) as exc_info:
            await read_upload_with_limit(mock_file, 10, field="photo")

        assert mock_file.read.await_count == 2
        assert exc_info.value.details == [{"field": "photo", "error": "FILE_TOO_LARGE"}]

    @pytest.mark.asyncio
    async def test_message_uses_megabytes(self) -> None:
        """The default limit is reported in MB."""
        mock_file = AsyncMock()
        mock_file.read = AsyncMock(side_effect=[b"X" * (2 * 1024 * 1024 + 1)])

        with pytest.raises(ValidationError) as exc_info:
            await read_upload_with_limit(mock_file)

        assert exc_info.value.message == "File size must be at most 2MB"
