import base64
from typing import Any, Literal
from pydantic import (
    BaseModel,
    ConfigDict,
    RootModel,
    constr,
    model_validator,
    field_validator,
)
from enum import StrEnum


class ApiVersion(StrEnum):
    V1 = "admission.k8s.io/v1"
    V1BETA1 = "admission.k8s.io/v1beta1"


class Operation(StrEnum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    CONNECT = "CONNECT"


class PatchType(StrEnum):
    JSONPatch = "JSONPatch"


class PatchOp(StrEnum):
    REPLACE = "replace"
    ADD = "add"


class PatchAction(BaseModel):
    op: PatchOp
    path: str
    value: Any = None


# https://jsonpatch.com/
Patch = RootModel[list[PatchAction]]


def dump_patch(patch: Patch) -> bytes:
    """Serialize a patch as a JSON array, leaving out unset values."""
    return patch.model_dump_json(exclude_none=True).encode()


# https://kubernetes.io/docs/reference/generated/kubernetes-api/v1.30/#status-v1-meta
class AdmissionReviewStatus(BaseModel):
    message: str


# https://kubernetes.io/docs/reference/config-api/apiserver-admission.v1/#admission-k8s-io-v1-AdmissionResponse
class AdmissionResponse(BaseModel):
    allowed: bool = False
    status: AdmissionReviewStatus | None = None
    uid: str
    patchType: PatchType | None = None
    patch: str | None = None

    @field_validator("patch", mode="before")
    @classmethod
    def validate_patch(cls, val):
        if isinstance(val, Patch):
            val = base64.b64encode(dump_patch(val)).decode()
        elif isinstance(val, (str, bytes)):
            # Make sure the base64 string contains valid data.
            Patch.model_validate_json(base64.b64decode(val))
        return val

    @model_validator(mode="after")
    def validate_model(self):
        if self.patch and not self.patchType:
            raise ValueError("missing patchType field")
        if self.patchType and not self.patch:
            raise ValueError(f"patchType is {self.patchType} but there is no patch")

        return self


# https://kubernetes.io/docs/reference/generated/kubernetes-api/v1.30/#groupversionkind-v1-meta
class GroupVersionKind(BaseModel):
    group: str = ""
    version: str = ""
    kind: str


# https://kubernetes.io/docs/reference/config-api/apiserver-admission.v1/#admission-k8s-io-v1-AdmissionRequest
class AdmissionRequest(BaseModel):
    uid: constr(min_length=1)
    kind: GroupVersionKind
    name: str | None = None
    namespace: str | None = None
    operation: Operation = Operation.CREATE
    object: dict[str, Any] | None = None


# https://kubernetes.io/docs/reference/config-api/apiserver-admission.v1/#admission-k8s-io-v1-AdmissionReview
class AdmissionReview(BaseModel):
    apiVersion: ApiVersion = ApiVersion.V1
    kind: Literal["AdmissionReview"] = "AdmissionReview"
    request: AdmissionRequest | None = None
    response: AdmissionResponse | None = None

    @model_validator(mode="after")
    def validate_model(self):
        if not (self.request or self.response):
            raise ValueError("must contain a request or a response")

        return self


# Only the parts of a Pod that the patch builder reads are modelled here.
# Anything else in the object is ignored.


class Metadata(BaseModel):
    name: str | None = None
    labels: dict[str, str] | None = None


class PodAntiAffinity(BaseModel):
    model_config = ConfigDict(extra="allow")

    requiredDuringSchedulingIgnoredDuringExecution: list[dict[str, Any]] | None = None


class Affinity(BaseModel):
    model_config = ConfigDict(extra="allow")

    podAntiAffinity: PodAntiAffinity | None = None


class PodSpec(BaseModel):
    nodeSelector: dict[str, str] | None = None
    affinity: Affinity | None = None
    topologySpreadConstraints: list[dict[str, Any]] | None = None


class Pod(BaseModel):
    metadata: Metadata = Metadata()
    spec: PodSpec = PodSpec()


class NamespacePolicy(BaseModel):
    """Scheduling policy read from the annotations of a namespace."""

    model_config = ConfigDict(frozen=True)

    node_selectors: tuple[tuple[str, str], ...] = ()
    anti_affinity_topology_keys: tuple[str, ...] = ()
    topology_spread_topology_keys: tuple[str, ...] = ()
