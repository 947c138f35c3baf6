import datetime
import hmac
import logging
import re
from dataclasses import dataclass, replace
from functools import reduce
from hashlib import sha256
from urllib.parse import quote

from ._http import URI, Field, Fields
from ._identity import AWSCredentialIdentity
from .exceptions import InvalidCredentialsException, InvalidSigningScopeException

logger = logging.getLogger(__name__)

DEFAULT_ALGORITHM: str = "AWS4-HMAC-SHA256"
DEFAULT_TERMINATION: str = "aws4_request"

HEADERS_EXCLUDED_FROM_SIGNING: tuple[str, ...] = ("authorization",)
DEFAULT_PORTS: dict[str, int] = {"http": 80, "https": 443}

AMZ_DATE_FIELD: str = "X-Amz-Date"
AUTHORIZATION_FIELD: str = "Authorization"
CONTENT_SHA256_FIELD: str = "X-Amz-Content-Sha256"
HOST_FIELD: str = "Host"
SECURITY_TOKEN_FIELD: str = "X-Amz-Security-Token"

SIGV4_TIMESTAMP_FORMAT: str = "%Y%m%dT%H%M%SZ"
UNSIGNED_PAYLOAD: str = "UNSIGNED-PAYLOAD"
EMPTY_SHA256_HASH = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"

_PERCENT_ESCAPE = re.compile(r"(%[0-9A-Fa-f]{2})")


def uri_encode(value: str, safe: str = "") -> str:
    """Percent-encode ``value`` the way SigV4 expects.

    Unreserved characters (``A-Z a-z 0-9 - . _ ~``) and anything in ``safe``
    are left alone, every other UTF-8 byte becomes ``%XX`` with upper case
    hex. Escapes already present in ``value`` are kept, so encoding canonical
    output a second time returns it unchanged.
    """
    # Splitting on a capture group alternates plain text and escapes.
    parts = _PERCENT_ESCAPE.split(value)
    return "".join(
        part.upper() if index % 2 else quote(part, safe=safe)
        for index, part in enumerate(parts)
    )


def condense_whitespace(value: str) -> str:
    """Trim ``value`` and collapse each inner whitespace run to one space."""
    return " ".join(value.split())


def sha256_hex(data: bytes | bytearray | str) -> str:
    if isinstance(data, str):
        data = data.encode()
    return sha256(data).hexdigest()


@dataclass(kw_only=True, frozen=True)
class SigningScope:
    """Date, region and service a signature (and its signing key) is bound to.

    ``date`` is the full request timestamp, e.g. ``20130524T000000Z``. Only
    its first eight characters (``YYYYMMDD``) take part in the credential
    scope and key derivation.
    """

    date: str
    region: str
    service: str

    def __post_init__(self) -> None:
        if len(self.date) < 8:
            raise InvalidSigningScopeException(
                "Signing scope date must start with an 8 character YYYYMMDD "
                f"value. Received: {self.date!r}"
            )
        if not self.region or not self.service:
            raise InvalidSigningScopeException(
                "Signing scope requires a region and a service. Received "
                f"region={self.region!r}, service={self.service!r}."
            )

    @property
    def day(self) -> str:
        return self.date[0:8]

    @property
    def short(self) -> str:
        """Scope without the termination token: ``<YYYYMMDD>/<region>/<service>``."""
        return f"{self.day}/{self.region}/{self.service}"

    def credential_scope(self, termination: str = DEFAULT_TERMINATION) -> str:
        # Scope format: <YYYYMMDD>/<AWS Region>/<AWS Service>/aws4_request
        return f"{self.short}/{termination}"

    @classmethod
    def from_datetime(
        cls,
        *,
        region: str,
        service: str,
        when: datetime.datetime | None = None,
    ) -> "SigningScope":
        """Build a scope from a datetime, defaulting to the current UTC time.

        Naive datetimes are taken to already be in UTC.
        """
        if when is None:
            when = datetime.datetime.now(datetime.UTC)
        elif when.tzinfo is not None:
            when = when.astimezone(datetime.UTC)
        return cls(
            date=when.strftime(SIGV4_TIMESTAMP_FORMAT),
            region=region,
            service=service,
        )


@dataclass(kw_only=True, frozen=True)
class SigV4Configuration:
    algorithm: str = DEFAULT_ALGORITHM
    termination: str = DEFAULT_TERMINATION
    # Use UNSIGNED-PAYLOAD instead of a hash when the body is empty.
    unsigned_payload: bool = True
    # Add X-Amz-Content-Sha256 to the request and sign it.
    include_content_hash: bool = True


class SigV4Signer:
    """
    Request signer for applying the AWS Signature Version 4 algorithm.

    The signer holds no per-request state. Every method is a pure function of
    its arguments apart from the documented writes to the caller's
    :class:`Fields`, so one instance can be shared across threads as long as
    each call gets its own header table.
    """

    def __init__(self, *, config: SigV4Configuration | None = None):
        self._config = config or SigV4Configuration()

    def add_authorization(
        self,
        *,
        identity: AWSCredentialIdentity,
        method: str,
        url: str | URI,
        headers: Fields,
        scope: SigningScope,
        payload: bytes | str = b"",
    ) -> bytes:
        """Sign a request in place and return the signing key.

        Writes ``X-Amz-Date`` and ``Authorization`` into ``headers``, plus
        ``X-Amz-Content-Sha256`` when content hashing is configured and
        ``X-Amz-Security-Token`` when the identity carries a session token.
        The returned key may be passed to :meth:`add_authorization_with_key`
        for later requests sharing the same day, region and service.
        """
        self._validate_identity(identity=identity)
        # Fail before touching the caller's table.
        uri = self._resolve_uri(url=url)
        self._validate_payload(payload=payload)
        signing_key = self.signing_key(
            secret_key=identity.secret_access_key, scope=scope
        )
        if identity.session_token:
            headers.set_field(
                Field(name=SECURITY_TOKEN_FIELD, values=[identity.session_token])
            )
        return self.add_authorization_with_key(
            access_key_id=identity.access_key_id,
            signing_key=signing_key,
            method=method,
            url=uri,
            headers=headers,
            scope=scope,
            payload=payload,
        )

    def add_authorization_with_key(
        self,
        *,
        access_key_id: str,
        signing_key: bytes,
        method: str,
        url: str | URI,
        headers: Fields,
        scope: SigningScope,
        payload: bytes | str = b"",
    ) -> bytes:
        """Sign a request in place using a previously derived signing key."""
        if not access_key_id:
            raise InvalidCredentialsException("Access key id must not be empty.")
        if not signing_key:
            raise InvalidCredentialsException("Signing key must not be empty.")
        uri = self._resolve_uri(url=url)
        self._validate_payload(payload=payload)

        headers.set_field(Field(name=AMZ_DATE_FIELD, values=[scope.date]))

        # The transport adds its own Host header, so only the caller's
        # original entry (if any) may survive signing.
        original_host = headers.get_field(HOST_FIELD)
        signed_headers, canonical_request = self.canonical_request(
            headers=headers, method=method, url=uri, payload=payload
        )
        if original_host is None:
            headers.remove_field(HOST_FIELD)
        else:
            headers.set_field(original_host)

        string_to_sign = self.string_to_sign(
            canonical_request=canonical_request, scope=scope
        )
        signature = self.signature(
            signing_key=signing_key, string_to_sign=string_to_sign
        )
        headers.set_field(
            self.generate_authorization_field(
                access_key_id=access_key_id,
                scope=scope,
                signed_headers=signed_headers,
                signature=signature,
            )
        )
        return signing_key

    def generate_authorization_field(
        self,
        *,
        access_key_id: str,
        scope: SigningScope,
        signed_headers: str,
        signature: str,
        algorithm: str | None = None,
        termination: str | None = None,
    ) -> Field:
        """Generate the `Authorization` field"""
        auth_str = self.format_authorization(
            access_key_id=access_key_id,
            scope=scope,
            signed_headers=signed_headers,
            signature=signature,
            algorithm=algorithm,
            termination=termination,
        )
        return Field(name=AUTHORIZATION_FIELD, values=[auth_str])

    def format_authorization(
        self,
        *,
        access_key_id: str,
        scope: SigningScope,
        signed_headers: str,
        signature: str,
        algorithm: str | None = None,
        termination: str | None = None,
    ) -> str:
        algorithm = algorithm or self._config.algorithm
        credential_scope = scope.credential_scope(
            termination or self._config.termination
        )
        return (
            f"{algorithm} Credential={access_key_id}/{credential_scope}, "
            f"SignedHeaders={signed_headers}, Signature={signature}"
        )

    def signature(self, *, signing_key: bytes, string_to_sign: str) -> str:
        signature = self._hash(key=signing_key, value=string_to_sign).hex()
        logger.debug("Signature:\n%s", signature)
        return signature

    def signing_key(
        self,
        *,
        secret_key: str,
        scope: SigningScope,
        termination: str | None = None,
    ) -> bytes:
        """Derive the signing key for a scope.

        In SigV4, a signing key is created that is scoped to a specific region and
        service. The date, region, service and termination string are hashed in
        turn, each step keyed by the result of the previous one.

        DateKey              = HMAC-SHA256("AWS4"+"<SecretAccessKey>", "<YYYYMMDD>")
        DateRegionKey        = HMAC-SHA256(<DateKey>, "<aws-region>")
        DateRegionServiceKey = HMAC-SHA256(<DateRegionKey>, "<aws-service>")
        SigningKey           = HMAC-SHA256(<DateRegionServiceKey>, "aws4_request")

        The key only depends on the day, region, service and termination, so
        it can be reused for every request sharing those values.
        """
        chain = (
            scope.day,
            scope.region,
            scope.service,
            termination or self._config.termination,
        )
        return reduce(
            lambda key, value: self._hash(key=key, value=value),
            chain,
            f"AWS4{secret_key}".encode(),
        )

    def string_to_sign(
        self,
        *,
        canonical_request: str,
        scope: SigningScope,
        algorithm: str | None = None,
        termination: str | None = None,
    ) -> str:
        string_to_sign = (
            f"{algorithm or self._config.algorithm}\n"
            f"{scope.date}\n"
            f"{scope.credential_scope(termination or self._config.termination)}\n"
            f"{sha256_hex(canonical_request)}"
        )
        logger.debug("StringToSign:\n%s", string_to_sign)
        return string_to_sign

    def canonical_request(
        self,
        *,
        headers: Fields,
        method: str,
        url: str | URI,
        payload: bytes | str = b"",
        unsigned_payload: bool | None = None,
        include_content_hash: bool | None = None,
    ) -> tuple[str, str]:
        """Build the canonical request.

        Sets ``Host`` (and ``X-Amz-Content-Sha256`` if requested) on
        ``headers`` before they are canonicalized; removing the synthetic
        ``Host`` afterwards is up to the caller.

        :returns: The semicolon-joined signed header names and the canonical
            request string.
        """
        if unsigned_payload is None:
            unsigned_payload = self._config.unsigned_payload
        if include_content_hash is None:
            include_content_hash = self._config.include_content_hash

        uri = self._resolve_uri(url=url)
        canonical_path = self._format_canonical_path(path=uri.path)
        canonical_query = self._format_canonical_query(query=uri.query)
        canonical_payload = self._format_canonical_payload(
            payload=payload, unsigned_payload=unsigned_payload
        )

        headers.set_field(
            Field(name=HOST_FIELD, values=[self._normalize_host_field(uri=uri)])
        )
        if include_content_hash:
            headers.set_field(
                Field(name=CONTENT_SHA256_FIELD, values=[canonical_payload])
            )
        normalized_fields = self._normalize_signing_fields(fields=headers)
        signed_headers = ";".join(normalized_fields)

        canonical_request = (
            f"{method.upper()}\n"
            f"{canonical_path}\n"
            f"{canonical_query}\n"
            f"{self._format_canonical_fields(fields=normalized_fields)}\n"
            f"{signed_headers}\n"
            f"{canonical_payload}"
        )
        logger.debug("CanonicalRequest:\n%s", canonical_request)
        return signed_headers, canonical_request

    def _hash(self, key: bytes, value: str) -> bytes:
        return hmac.new(key=key, msg=value.encode(), digestmod=sha256).digest()

    def _validate_identity(self, *, identity: AWSCredentialIdentity) -> None:
        """Perform runtime and expiration checks before attempting signing."""
        if not isinstance(identity, AWSCredentialIdentity):
            raise InvalidCredentialsException(
                "Received unexpected value for identity parameter. Expected "
                f"AWSCredentialIdentity but received {type(identity)}."
            )
        elif not identity.access_key_id or not identity.secret_access_key:
            raise InvalidCredentialsException(
                "Provided identity is missing an access key id or secret "
                "access key."
            )
        elif identity.is_expired:
            raise InvalidCredentialsException(
                f"Provided identity expired at {identity.expiration}. Please "
                "refresh the credentials or update the expiration parameter."
            )

    def _format_canonical_path(self, *, path: str | None) -> str:
        if not path:
            path = "/"
        return uri_encode(path, safe="/")

    def _format_canonical_query(self, *, query: str | None) -> str:
        if not query:
            return ""

        # A bare key such as ``?lifecycle`` is signed with an empty value.
        query_parts = (
            uri_encode(part if "=" in part else f"{part}=", safe="=")
            for part in query.split("&")
            if part
        )
        # Segments must be in sorted order for their encoded forms.
        return "&".join(sorted(query_parts))

    def _normalize_signing_fields(self, *, fields: Fields) -> dict[str, str]:
        normalized_fields = {
            field.name.lower(): "".join(
                condense_whitespace(value) for value in field.values
            )
            for field in fields
            if field.name.lower() not in HEADERS_EXCLUDED_FROM_SIGNING
        }
        return dict(sorted(normalized_fields.items()))

    def _normalize_host_field(self, *, uri: URI) -> str:
        if uri.port is not None and DEFAULT_PORTS.get(uri.scheme) == uri.port:
            uri = replace(uri, port=None)
        return uri.netloc

    def _format_canonical_fields(self, *, fields: dict[str, str]) -> str:
        return "".join(f"{key}:{value}\n" for key, value in fields.items())

    def _format_canonical_payload(
        self, *, payload: bytes | str, unsigned_payload: bool
    ) -> str:
        self._validate_payload(payload=payload)
        if not payload and unsigned_payload:
            return UNSIGNED_PAYLOAD
        return sha256_hex(payload)

    def _resolve_uri(self, *, url: str | URI) -> URI:
        return url if isinstance(url, URI) else URI.from_url(url)

    def _validate_payload(self, *, payload: bytes | str) -> None:
        if not isinstance(payload, (bytes, bytearray, str)):
            raise TypeError(
                "Streaming payloads are not supported. Expected bytes or str "
                f"but received {type(payload)}."
            )
