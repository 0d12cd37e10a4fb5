import asyncio

from coursehub.core.core import Service
from coursehub.core.modules.credential.hasher import KdfParams, hash_password, is_legacy_credential, verify_password


class CredentialService(Service):
    """Password hashing with the process-wide KDF parameters.

    The KDF runs in worker threads so slow hashes never block the event loop.
    """

    _params: KdfParams | None = None
    _dummy_credential: str | None = None

    @property
    def params(self) -> KdfParams:
        if self._params is None:
            config = self.core.config
            self._params = KdfParams(
                time_cost=config.kdf_time_cost,
                memory_cost=config.kdf_memory_cost,
                parallelism=config.kdf_parallelism,
                hash_len=config.kdf_hash_len,
            )
        return self._params

    async def hash(self, plaintext: str) -> str:
        return await asyncio.to_thread(hash_password, plaintext, self.params)

    async def verify(self, plaintext: str, credential: str) -> bool:
        allow_legacy = self.core.config.allow_legacy_credentials
        return await asyncio.to_thread(verify_password, plaintext, credential, self.params, allow_legacy)

    def needs_rehash(self, credential: str) -> bool:
        return is_legacy_credential(credential)

    async def burn_verify(self, plaintext: str) -> None:
        """Run a full verification against a throwaway credential.

        Keeps failed logins for unknown users about as slow as wrong passwords.
        """
        if self._dummy_credential is None:
            self._dummy_credential = await self.hash("coursehub-dummy-password")
        await self.verify(plaintext, self._dummy_credential)
