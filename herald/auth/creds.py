"""Credential and key models for a multi-device messaging session.

The protocol client owns the meaning of these fields; Herald only needs
to create a valid default set for a brand-new session and to round-trip
whatever the client stores. Unknown fields are preserved.
"""

import base64
import secrets
from typing import Any

from cryptography.hazmat.primitives.asymmetric import ed25519, x25519
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    NoEncryption,
    PrivateFormat,
    PublicFormat,
)
from pydantic import BaseModel, ConfigDict, Field

# Curve25519 public keys travel with a one-byte type prefix
KEY_BUNDLE_TYPE = b"\x05"


class KeyPair(BaseModel):
    """A Curve25519 key pair (raw 32-byte keys)."""

    public: bytes = Field(..., description="Raw public key")
    private: bytes = Field(..., description="Raw private key")


class SignedKeyPair(BaseModel):
    """Signed pre-key: a key pair, its id and the identity signature."""

    key_pair: KeyPair
    key_id: int = Field(..., ge=0)
    signature: bytes


class AuthenticationCreds(BaseModel):
    """Long-term credentials of one messaging session.

    Created once per session lifetime by `init_auth_creds()` and updated
    in place by the protocol client whenever it rotates material.
    """

    model_config = ConfigDict(extra="allow", validate_assignment=True)

    noise_key: KeyPair
    pairing_ephemeral_key_pair: KeyPair
    signed_identity_key: KeyPair
    signed_pre_key: SignedKeyPair
    registration_id: int = Field(..., ge=0, lt=1 << 14)
    adv_secret_key: str
    next_pre_key_id: int = 1
    first_unuploaded_pre_key_id: int = 1
    account_sync_counter: int = 0
    account_settings: dict[str, Any] = Field(
        default_factory=lambda: {"unarchive_chats": False}
    )
    processed_history_messages: list[dict[str, Any]] = Field(default_factory=list)
    registered: bool = False
    me: dict[str, Any] | None = None
    pairing_code: str | None = None

    def reset(self) -> None:
        """Replace every field with a fresh default set, in place.

        Unknown fields are dropped. Existing references to this object
        see the new values.
        """
        fresh = init_auth_creds()
        if self.__pydantic_extra__:
            self.__pydantic_extra__.clear()
        for name in type(self).model_fields:
            setattr(self, name, getattr(fresh, name))


class AppStateSyncKeyData(BaseModel):
    """Structured form of an ``app-state-sync-key`` entry.

    Accepts both snake_case and the camelCase names the Node.js client
    writes.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    key_data: bytes = Field(..., alias="keyData")
    fingerprint: dict[str, Any] | None = None
    timestamp: int | None = None


def generate_key_pair() -> KeyPair:
    """Generate a fresh X25519 key pair."""
    private_key = x25519.X25519PrivateKey.generate()
    return KeyPair(
        public=private_key.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw),
        private=private_key.private_bytes(
            Encoding.Raw, PrivateFormat.Raw, NoEncryption()
        ),
    )


def signed_key_pair(identity: KeyPair, key_id: int) -> SignedKeyPair:
    """Generate a pre-key signed by the identity key.

    The signature covers the type-prefixed public key. It is produced with
    Ed25519 over the identity seed; clients that need XEdDSA signatures
    re-sign during registration.
    """
    key_pair = generate_key_pair()
    signer = ed25519.Ed25519PrivateKey.from_private_bytes(identity.private)
    return SignedKeyPair(
        key_pair=key_pair,
        key_id=key_id,
        signature=signer.sign(KEY_BUNDLE_TYPE + key_pair.public),
    )


def init_auth_creds() -> AuthenticationCreds:
    """Create the default credential set for a session that was never paired."""
    identity = generate_key_pair()
    return AuthenticationCreds(
        noise_key=generate_key_pair(),
        pairing_ephemeral_key_pair=generate_key_pair(),
        signed_identity_key=identity,
        signed_pre_key=signed_key_pair(identity, 1),
        registration_id=secrets.randbits(14),
        adv_secret_key=base64.b64encode(secrets.token_bytes(32)).decode("ascii"),
    )
