"""
API Endpoints
JSON routes driving the portrait and playground studios
"""

import time
import traceback
from dataclasses import replace
from typing import Callable

from flask import Blueprint, current_app, jsonify, request, session
from flask_cors import cross_origin
from werkzeug.exceptions import RequestEntityTooLarge

from .clients import FaceDescriptionClient, ImageGenerationClient, build_portrait_prompt
from .config import StudioConfig
from .encoder import encode_upload
from .errors import (
    UNKNOWN_ERROR_MESSAGE,
    CredentialMissing,
    FileReadFailure,
    RemoteRequestFailure,
    RemoteResponseMalformed,
    SizeLimitExceeded,
    StudioError,
)
from .models import create_error_response, create_success_response
from .state import (
    apply_upload,
    begin_analysis,
    begin_generation,
    begin_playground,
    reject_upload,
    reset_playground,
    reset_portrait,
    session_view,
    set_face_description,
    set_playground_prompt,
    set_scene_prompt,
    settle_analysis,
    settle_generation,
    settle_playground,
)
from .store import SessionStore

# Create API blueprint
studio_bp = Blueprint('studio', __name__, url_prefix='/api/v1')

HTTP_STATUS = {
    SizeLimitExceeded: 413,
    FileReadFailure: 400,
    CredentialMissing: 503,
    RemoteRequestFailure: 502,
    RemoteResponseMalformed: 502,
}


def get_config() -> StudioConfig:
    return current_app.config['STUDIO_CONFIG']


def get_store() -> SessionStore:
    return current_app.extensions['studio_store']


def get_session_id() -> str:
    sid = session.get('sid')
    if not sid:
        sid = SessionStore.new_id()
        session['sid'] = sid
    return sid


def _field(name: str) -> str:
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        value = data.get(name, '')
    else:
        value = request.form.get(name, '')
    return value if isinstance(value, str) else ''


def _optional_field(name: str):
    """Field value if the request carries it, else None"""
    data = request.get_json(silent=True)
    source = data if isinstance(data, dict) else request.form
    if name not in source:
        return None
    value = source.get(name)
    return value if isinstance(value, str) else ''


def _begin_with_inputs(begin: Callable, inputs: Callable) -> Callable:
    """
    Apply the input values sent with a trigger, then begin

    The inputs are kept only when the operation starts, so a refused
    trigger leaves the studio unchanged.
    """
    def _begin(studio):
        new_studio, started, reason = begin(inputs(studio))
        if not started:
            return studio, False, reason
        return new_studio, True, None
    return _begin


def _portrait_inputs(description, scene) -> Callable:
    def apply(studio):
        if description is not None:
            studio = set_face_description(studio, description)
        if scene is not None:
            studio = set_scene_prompt(studio, scene)
        return studio
    return apply


def _state(sid: str) -> dict:
    return session_view(get_store().get(sid))


def _status_for(error: StudioError) -> int:
    return HTTP_STATUS.get(type(error), 500)


def _internal_error(where: str, e: Exception):
    print(f"Error in {where}:", e)
    print(traceback.format_exc())
    return jsonify(create_error_response('SERVICE_003', f"Error: {str(e)}")), 500


def _update_portrait(sid: str, fn: Callable):
    return get_store().update(sid, lambda s: (replace(s, portrait=fn(s.portrait)), None))


def _update_playground(sid: str, fn: Callable):
    return get_store().update(sid, lambda s: (replace(s, playground=fn(s.playground)), None))


def _run_operation(sid: str, studio: str, begin: Callable, call: Callable,
                   settle: Callable, result_name: str, success_message: str):
    """
    Begin an operation, make its single remote call, then settle it

    The store lock is held only for the begin and settle transitions.

    Args:
        sid: Session id
        studio: 'portrait' or 'playground'
        begin: Pure begin transition for the studio
        call: Takes the studio after begin, returns the operation result
        settle: Pure settle transition (studio, ticket, <result_name>=..., error=...)
        result_name: Keyword the settle transition takes the result under
        success_message: Message for the JSON envelope
    """
    start_time = time.time()
    store = get_store()

    def _begin(current):
        new_studio, started, reason = begin(getattr(current, studio))
        return replace(current, **{studio: new_studio}), (started, reason)

    started_session, (started, reason) = store.update(sid, _begin)
    if not started:
        return jsonify(create_error_response('STATE_001', reason,
                                             state=session_view(started_session))), 409

    started_studio = getattr(started_session, studio)
    ticket = started_studio.seq

    def _settle(**outcome):
        def apply(current):
            new_studio = settle(getattr(current, studio), ticket, **outcome)
            return replace(current, **{studio: new_studio}), None
        settled_session, _ = store.update(sid, apply)
        return session_view(settled_session)

    try:
        result = call(started_studio)
    except StudioError as e:
        state = _settle(error=e.message)
        return jsonify(create_error_response(e.error_code, e.message, state=state)), _status_for(e)
    except Exception as e:
        _settle(error=UNKNOWN_ERROR_MESSAGE)
        return _internal_error(f"{studio} operation", e)

    state = _settle(**{result_name: result})
    elapsed = time.time() - start_time
    return jsonify(create_success_response(success_message, state=state,
                                           metadata={'processing_time': f"{elapsed:.1f}s"}))


@studio_bp.route('/health', methods=['GET'])
@cross_origin()
def health_check():
    """
    Health check endpoint
    """
    return jsonify({
        'status': 'healthy',
        'timestamp': time.time(),
        'services': {
            'gemini_api_key': get_config().has_api_key,
            'sessions': len(get_store()),
        }
    })


@studio_bp.route('/state', methods=['GET'])
@cross_origin()
def get_state():
    return jsonify(create_success_response('Current state', state=_state(get_session_id())))


def _reject_upload(sid: str, error: StudioError):
    print(f"⚠️ Upload rejected: {error.message}")
    new_session, _ = _update_portrait(sid, lambda p: reject_upload(p, error.message))
    return jsonify(create_error_response(error.error_code, error.message,
                                         state=session_view(new_session))), _status_for(error)


@studio_bp.route('/portrait/upload', methods=['POST'])
@cross_origin()
def upload_image():
    """
    Upload the photo for the portrait studio (multipart field 'image')
    """
    sid = get_session_id()
    try:
        try:
            image_file = request.files.get('image')
        except RequestEntityTooLarge:
            return _reject_upload(sid, SizeLimitExceeded.for_limit(get_config().max_upload_bytes))

        if not image_file or not image_file.filename:
            return jsonify(create_error_response('VALIDATION_001', 'Image file is required',
                                                 state=_state(sid))), 400

        try:
            image = encode_upload(image_file, max_bytes=get_config().max_upload_bytes)
        except StudioError as e:
            return _reject_upload(sid, e)

        new_session, _ = _update_portrait(sid, lambda p: apply_upload(p, image))
        return jsonify(create_success_response('Image uploaded', state=session_view(new_session),
                                               metadata={'size_bytes': image.size_bytes,
                                                         'mime_type': image.mime_type}))
    except Exception as e:
        return _internal_error('portrait upload', e)


@studio_bp.route('/portrait/description', methods=['POST'])
@cross_origin()
def update_description():
    sid = get_session_id()
    text = _field('description')
    new_session, _ = _update_portrait(sid, lambda p: set_face_description(p, text))
    return jsonify(create_success_response('Description updated', state=session_view(new_session)))


@studio_bp.route('/portrait/scene', methods=['POST'])
@cross_origin()
def update_scene():
    sid = get_session_id()
    text = _field('scene')
    new_session, _ = _update_portrait(sid, lambda p: set_scene_prompt(p, text))
    return jsonify(create_success_response('Scene prompt updated', state=session_view(new_session)))


@studio_bp.route('/portrait/analyze', methods=['POST'])
@cross_origin()
def analyze_face():
    """
    Describe the face in the uploaded photo
    """
    client = FaceDescriptionClient.from_config(get_config())
    return _run_operation(
        get_session_id(), 'portrait', begin_analysis,
        lambda studio: client.describe(studio.upload.raw_base64),
        settle_analysis, 'description', 'Face analyzed successfully',
    )


@studio_bp.route('/portrait/generate', methods=['POST'])
@cross_origin()
def generate_portrait():
    """
    Generate a portrait from the face description and the scene prompt

    Optional 'description' and 'scene' fields replace the stored values first.
    """
    client = ImageGenerationClient.for_portrait(get_config())
    inputs = _portrait_inputs(_optional_field('description'), _optional_field('scene'))
    return _run_operation(
        get_session_id(), 'portrait', _begin_with_inputs(begin_generation, inputs),
        lambda studio: client.generate(build_portrait_prompt(studio.face_description,
                                                             studio.scene_prompt)),
        settle_generation, 'image', 'Portrait generated successfully',
    )


@studio_bp.route('/portrait/reset', methods=['POST'])
@cross_origin()
def reset_portrait_studio():
    new_session, _ = _update_portrait(get_session_id(), reset_portrait)
    return jsonify(create_success_response('Portrait studio reset', state=session_view(new_session)))


@studio_bp.route('/playground/prompt', methods=['POST'])
@cross_origin()
def update_playground_prompt():
    sid = get_session_id()
    text = _field('prompt')
    new_session, _ = _update_playground(sid, lambda p: set_playground_prompt(p, text))
    return jsonify(create_success_response('Prompt updated', state=session_view(new_session)))


@studio_bp.route('/playground/generate', methods=['POST'])
@cross_origin()
def generate_playground_image():
    """
    Generate an image straight from the playground prompt

    An optional 'prompt' field replaces the stored prompt first.
    """
    client = ImageGenerationClient.for_playground(get_config())
    prompt = _optional_field('prompt')

    def inputs(studio):
        return studio if prompt is None else set_playground_prompt(studio, prompt)

    return _run_operation(
        get_session_id(), 'playground', _begin_with_inputs(begin_playground, inputs),
        lambda studio: client.generate(studio.prompt),
        settle_playground, 'image', 'Image generated successfully',
    )


@studio_bp.route('/playground/reset', methods=['POST'])
@cross_origin()
def reset_playground_studio():
    new_session, _ = _update_playground(get_session_id(), reset_playground)
    return jsonify(create_success_response('Playground reset', state=session_view(new_session)))
