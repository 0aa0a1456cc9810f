import re

from app.ingestion.checksum import compute_checksum


class TestComputeChecksum:
    def test_is_stable_for_identical_input(self) -> None:
        first = compute_checksum(b"test content")
        second = compute_checksum(b"test content")
        assert first == second

    def test_is_64_lowercase_hex_chars(self) -> None:
        assert re.fullmatch(r"[0-9a-f]{64}", compute_checksum(b"test content"))

    def test_matches_known_sha256(self) -> None:
        assert compute_checksum(b"") == (
            "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
        )

    def test_differs_for_different_content(self) -> None:
        assert compute_checksum(b"a") != compute_checksum(b"b")
