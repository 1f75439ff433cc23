"""Rejection reasons for proof-of-possession artifacts.

Every error is terminal for the artifact that raised it: the holder has to
fetch a fresh nonce and sign a new artifact. None of them indicate a fault in
the service itself.
"""

from enum import Enum


class VerificationStage(str, Enum):
    """Stages a single verification attempt passes through, in order."""

    RECEIVED = "received"
    ALGORITHM_CHECKED = "algorithm_checked"
    KEY_PARSED = "key_parsed"
    SIGNATURE_VERIFIED = "signature_verified"
    CHALLENGE_EXTRACTED = "challenge_extracted"
    CONSUMED = "consumed"


class ProofError(ValueError):
    """Base class for a rejected proof.

    ``stage`` is the last stage the artifact reached before being rejected.
    The message is safe to return to the client.
    """

    code = "proof_rejected"
    stage = VerificationStage.RECEIVED
    default_message = "Proof rejected"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)


class MalformedArtifact(ProofError):
    code = "malformed_artifact"
    stage = VerificationStage.RECEIVED
    default_message = "Artifact is not a well-formed compact JWS"


class UnsupportedAlgorithm(ProofError):
    code = "unsupported_algorithm"
    stage = VerificationStage.RECEIVED
    default_message = "Signature algorithm is not allowed"


class MalformedKey(ProofError):
    code = "malformed_key"
    stage = VerificationStage.ALGORITHM_CHECKED
    default_message = "Embedded public key is malformed"


class SignatureInvalid(ProofError):
    code = "signature_invalid"
    stage = VerificationStage.KEY_PARSED
    default_message = "Signature does not verify under the embedded key"


class MissingOrMalformedChallenge(ProofError):
    code = "missing_or_malformed_challenge"
    stage = VerificationStage.SIGNATURE_VERIFIED
    default_message = "Nonce not found in claims"


class UnknownOrReplayedChallenge(ProofError):
    code = "unknown_or_replayed_challenge"
    stage = VerificationStage.CHALLENGE_EXTRACTED
    default_message = "Invalid or reused nonce"
