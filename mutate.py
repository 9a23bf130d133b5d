import json
import logging
import pydantic

from flask import Flask, request, jsonify, current_app
from werkzeug.exceptions import BadRequest, HTTPException, UnsupportedMediaType

from models import (
    BaseModel,
    AdmissionRequest,
    AdmissionReview,
    AdmissionResponse,
    AdmissionReviewStatus,
    Patch,
    PatchType,
    Pod,
)

from patches import build_patch
from policy import resolve_policy
from providers import KubernetesProvider
from exc import ApplicationError, ObjectDecodeError, SerializationError

LOG = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO)


class DEFAULTS:
    PROVIDER = KubernetesProvider
    KUBECONFIG = None


def jsonresponse():
    """Transforms the response from a view function into a JSON object."""

    def _outer(func):
        def _inner(*args, **kwargs):
            res = func(*args, **kwargs)
            if isinstance(res, BaseModel):
                return jsonify(res.model_dump(mode="json", exclude_none=True))
            else:
                return jsonify(res)

        return _inner

    return _outer


def mutate(provider, req: AdmissionRequest) -> Patch:
    """Compute the patch for a single admission request.

    Requests for anything other than a Pod pass through unchanged.
    """
    if req.kind.kind != "Pod":
        LOG.debug("passing through %s %s", req.kind.kind, req.name)
        return Patch([])

    if req.object is None:
        raise ObjectDecodeError("request does not contain a pod")

    try:
        pod = Pod.model_validate(req.object)
    except pydantic.ValidationError as err:
        LOG.error("failed to decode pod: %s", err)
        raise ObjectDecodeError("failed to decode pod")

    policy = resolve_policy(provider, req.namespace)
    patch = build_patch(pod, policy)

    LOG.info(
        "pod %s in namespace %s: %d patch operations",
        pod.metadata.name or req.name,
        req.namespace,
        len(patch.root),
    )
    return patch


def recover_uid(body: bytes) -> str:
    """Best effort attempt to find the request uid in an undecodable review."""
    try:
        uid = json.loads(body)["request"]["uid"]
    except (ValueError, TypeError, KeyError):
        return ""

    return uid if isinstance(uid, str) else ""


def decode_failure(body: bytes, message: str) -> AdmissionReview:
    return AdmissionReview(
        response=AdmissionResponse(
            uid=recover_uid(body),
            allowed=False,
            status=AdmissionReviewStatus(message=message),
        )
    )


@jsonresponse()
def mutate_pod():
    if request.mimetype != "application/json":
        LOG.warning("Content-Type=%s, expect application/json", request.content_type)
        raise UnsupportedMediaType("invalid Content-Type, expect `application/json`")

    body = request.get_data()
    if not body:
        LOG.warning("empty body received")
        raise BadRequest("empty body")

    try:
        review = AdmissionReview.model_validate_json(body)
    except pydantic.ValidationError as err:
        LOG.warning("can't decode body: %s", err)
        return decode_failure(body, str(err))

    if review.request is None:
        LOG.warning("can't decode body: review contains no request")
        return decode_failure(body, "admission review contains no request")

    patch = mutate(current_app.provider, review.request)

    if not patch.root:
        response = AdmissionResponse(uid=review.request.uid, allowed=True)
    else:
        try:
            response = AdmissionResponse(
                uid=review.request.uid,
                allowed=True,
                patchType=PatchType.JSONPatch,
                patch=patch,
            )
        except pydantic.ValidationError as err:
            LOG.error("failed to serialize patch: %s", err)
            raise SerializationError("failed to serialize patch")

    # Reply in the same version the API server asked in.
    return AdmissionReview(apiVersion=review.apiVersion, response=response)


def handle_httperror(err):
    headers = [
        (name, value)
        for name, value in err.get_headers()
        if name.lower() != "content-type"
    ]
    headers.append(("content-type", "text/plain"))
    return err.description, err.code, headers


def handle_applicationerror(err):
    return str(err), 500, {"content-type": "text/plain"}


def health():
    return "OK", 200, {"content-type": "text/plain"}


def create_app(**config) -> Flask:
    """Use an application factory [1] to create the Flask app.

    This makes it much easier to write tests for the application, since we can
    set up the test environment before instantiating the app. This is difficult
    to do if the app is created at `import` time.

    [1]: https://flask.palletsprojects.com/en/3.0.x/patterns/appfactories/
    """

    app = Flask(__name__)
    app.config.from_object(DEFAULTS)
    app.config.from_prefixed_env("PODPOLICY")
    if config:
        app.config.update(config)

    # The provider holds the only long-lived state: a read-only API client
    # shared by all requests.
    app.provider = app.config["PROVIDER"](app.config["KUBECONFIG"])

    app.errorhandler(HTTPException)(handle_httperror)
    app.errorhandler(ApplicationError)(handle_applicationerror)
    app.add_url_rule("/healthz", view_func=health)
    app.add_url_rule("/mutate", view_func=mutate_pod, methods=["POST"])

    return app
