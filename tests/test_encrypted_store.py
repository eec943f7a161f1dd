"""
Tests for encrypted session payloads.
"""

import pytest

from pysession.exceptions import ConfigurationError, PayloadDecryptionError
from pysession.store.encrypted import Encrypter, encrypted_store
from pysession.store.store import Store

TEST_SECRET = "sdhfjasdfasjdhfjhsajdhfjhasdfsdksdf"

VALUE = "data to store"


@pytest.fixture
def encrypted(file_handler):
    """Create an encrypted store over the file handler."""
    return encrypted_store("pysession", file_handler, secret=TEST_SECRET)


class TestEncrypter:
    """Tests for the Fernet-backed Encrypter."""

    def test_round_trip(self):
        """Test decrypt inverts encrypt."""
        encrypter = Encrypter(TEST_SECRET)
        assert encrypter.decrypt(encrypter.encrypt(VALUE)) == VALUE

    def test_ciphertext_differs(self):
        """Test ciphertext never equals the plaintext."""
        encrypter = Encrypter(TEST_SECRET)
        assert encrypter.encrypt(VALUE) != VALUE

    def test_wrong_secret(self):
        """Test a different secret cannot decrypt."""
        token = Encrypter(TEST_SECRET).encrypt(VALUE)
        with pytest.raises(PayloadDecryptionError):
            Encrypter("another secret entirely").decrypt(token)

    def test_garbage_token(self):
        """Test non-token input raises PayloadDecryptionError."""
        with pytest.raises(PayloadDecryptionError):
            Encrypter(TEST_SECRET).decrypt("plain text")

    def test_empty_secret(self):
        """Test an empty secret is rejected."""
        with pytest.raises(ConfigurationError):
            Encrypter("")


class TestEncryptedStore:
    """Tests for stores built by encrypted_store."""

    def test_is_a_store(self, encrypted):
        """Test the result is a plain Store."""
        assert isinstance(encrypted, Store)

    def test_prepare_for_storage_encrypts(self, encrypted):
        """Test storage preparation changes the payload."""
        assert encrypted.prepare_for_storage(VALUE) != VALUE

    def test_prepare_for_parse_decrypts(self, encrypted):
        """Test parse preparation inverts storage preparation."""
        assert encrypted.prepare_for_parse(encrypted.prepare_for_storage(VALUE)) == VALUE

    @pytest.mark.asyncio
    async def test_payload_encrypted_at_rest(self, encrypted, file_handler):
        """Test the handler never sees plaintext."""
        await encrypted.start()
        encrypted.put("secret", "hunter2")
        await encrypted.save()

        raw = await file_handler.read(encrypted.get_id())
        assert raw
        assert "hunter2" not in raw

        reloaded = encrypted_store(
            "pysession", file_handler, secret=TEST_SECRET, session_id=encrypted.get_id()
        )
        await reloaded.start()
        assert reloaded.get("secret") == "hunter2"

    @pytest.mark.asyncio
    async def test_secret_mismatch_yields_empty_session(self, encrypted, file_handler):
        """Test a payload from another secret degrades to an empty session."""
        await encrypted.start()
        encrypted.put("user", "alice")
        await encrypted.save()

        other = encrypted_store(
            "pysession", file_handler, secret="rotated secret", session_id=encrypted.get_id()
        )
        await other.start()

        assert not other.has("user")
        assert other.get_token() != encrypted.get_token()

    def test_injected_encrypter(self, memory_handler):
        """Test a supplied cipher is used instead of deriving one."""
        class Reverser:
            def encrypt(self, data):
                return data[::-1]

            def decrypt(self, data):
                return data[::-1]

        store = encrypted_store("s", memory_handler, encrypter=Reverser())
        assert store.prepare_for_storage("abc") == "cba"

    @pytest.mark.asyncio
    async def test_failing_cipher_yields_empty_session(self, memory_handler):
        """Test any decrypt failure from a supplied cipher starts an empty session."""
        class Rejecting:
            def encrypt(self, data):
                return data

            def decrypt(self, data):
                raise RuntimeError("bad signature")

        session_id = Store.generate_session_id()
        await memory_handler.write(session_id, "{\"user\": \"alice\"}")
        store = encrypted_store("s", memory_handler, encrypter=Rejecting(), session_id=session_id)

        await store.start()

        assert store.is_started() is True
        assert not store.has("user")
        assert set(store.all().keys()) == {"_token"}

    def test_requires_secret_or_cipher(self, memory_handler):
        """Test building without cipher or secret fails fast."""
        with pytest.raises(ConfigurationError):
            encrypted_store("s", memory_handler)
