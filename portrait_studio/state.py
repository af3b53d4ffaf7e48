"""
Studio session state
Plain frozen dataclasses plus pure transition functions. Every transition returns
a new value; the endpoints store it back in the session store.

Each operation is Idle, InFlight or Settled(ok | err). Begin and settle events
are numbered by a studio-local counter; the number given to an in-flight
operation is its ticket, and a settle is applied only while that ticket is
still the operation's current one.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional, Tuple

from .models import UploadedImage

IDLE = 'idle'
IN_FLIGHT = 'in_flight'
SETTLED = 'settled'

MSG_UPLOAD_FIRST = "Please upload an image first."
MSG_DESCRIPTION_FIRST = "Please analyze a face or manually enter a description first."
MSG_SCENE_REQUIRED = "Please enter a scene or style prompt."
MSG_PROMPT_REQUIRED = "Please enter a prompt."
MSG_ANALYSIS_RUNNING = "Face analysis is already in progress."
MSG_GENERATION_RUNNING = "Image generation is already in progress."


@dataclass(frozen=True)
class OperationState:
    status: str = IDLE
    ok: bool = False
    result: Any = None
    error: Optional[str] = None
    seq: int = 0

    @property
    def is_idle(self) -> bool:
        return self.status == IDLE

    @property
    def in_flight(self) -> bool:
        return self.status == IN_FLIGHT

    @property
    def settled(self) -> bool:
        return self.status == SETTLED

    @property
    def failed(self) -> bool:
        return self.settled and not self.ok

    @property
    def succeeded(self) -> bool:
        return self.settled and self.ok


def idle() -> OperationState:
    return OperationState()


def in_flight(seq: int) -> OperationState:
    return OperationState(status=IN_FLIGHT, seq=seq)


def settled_ok(result: Any, seq: int) -> OperationState:
    return OperationState(status=SETTLED, ok=True, result=result, seq=seq)


def settled_err(message: str, seq: int) -> OperationState:
    return OperationState(status=SETTLED, ok=False, error=message, seq=seq)


def _drop_error(op: OperationState) -> OperationState:
    return idle() if op.failed else op


def _drop_settled(op: OperationState) -> OperationState:
    return idle() if op.settled else op


@dataclass(frozen=True)
class PortraitStudio:
    upload: Optional[UploadedImage] = None
    face_description: str = ''
    scene_prompt: str = ''
    analysis: OperationState = field(default_factory=idle)
    generation: OperationState = field(default_factory=idle)
    # upload failures; settles in the same order as the operations
    notice: OperationState = field(default_factory=idle)
    seq: int = 0

    @property
    def generated_image(self) -> Optional[str]:
        return self.generation.result if self.generation.succeeded else None

    @property
    def can_analyze(self) -> bool:
        return self.upload is not None and not self.analysis.in_flight

    @property
    def can_generate(self) -> bool:
        return (bool(self.face_description.strip()) and bool(self.scene_prompt.strip())
                and not self.generation.in_flight)


@dataclass(frozen=True)
class PlaygroundStudio:
    prompt: str = ''
    generation: OperationState = field(default_factory=idle)
    seq: int = 0

    @property
    def generated_image(self) -> Optional[str]:
        return self.generation.result if self.generation.succeeded else None

    @property
    def can_generate(self) -> bool:
        return bool(self.prompt.strip()) and not self.generation.in_flight


@dataclass(frozen=True)
class StudioSession:
    portrait: PortraitStudio = field(default_factory=PortraitStudio)
    playground: PlaygroundStudio = field(default_factory=PlaygroundStudio)


Transition = Tuple[Any, bool, Optional[str]]


def visible_error(studio) -> Optional[str]:
    """
    Error to show for a studio: the most recently settled outcome, if it failed

    A newer success anywhere in the studio hides older errors.
    """
    operations = [studio.generation]
    if isinstance(studio, PortraitStudio):
        operations += [studio.analysis, studio.notice]
    latest = max((op for op in operations if op.settled), key=lambda op: op.seq, default=None)
    if latest is not None and latest.failed:
        return latest.error
    return None


# Portrait studio

def apply_upload(studio: PortraitStudio, image: UploadedImage) -> PortraitStudio:
    """A fresh upload invalidates the description, the generated portrait and any error"""
    return replace(
        studio,
        upload=image,
        face_description='',
        analysis=idle(),
        generation=idle(),
        notice=idle(),
        seq=studio.seq + 1,
    )


def reject_upload(studio: PortraitStudio, message: str) -> PortraitStudio:
    """A failed upload only clears the pending image"""
    seq = studio.seq + 1
    return replace(studio, upload=None, notice=settled_err(message, seq), seq=seq)


def set_face_description(studio: PortraitStudio, text: str) -> PortraitStudio:
    return replace(studio, face_description=text or '', generation=_drop_settled(studio.generation))


def set_scene_prompt(studio: PortraitStudio, text: str) -> PortraitStudio:
    return replace(studio, scene_prompt=text or '', generation=_drop_settled(studio.generation))


def begin_analysis(studio: PortraitStudio) -> Transition:
    """
    Start a face analysis

    Returns:
        tuple: (new studio, started, reason); when not started the studio is unchanged
    """
    if studio.analysis.in_flight:
        return studio, False, MSG_ANALYSIS_RUNNING
    if studio.upload is None:
        return studio, False, MSG_UPLOAD_FIRST

    seq = studio.seq + 1
    return replace(
        studio,
        face_description='',
        analysis=in_flight(seq),
        generation=_drop_error(studio.generation),
        notice=idle(),
        seq=seq,
    ), True, None


def settle_analysis(studio: PortraitStudio, ticket: int,
                    description: Optional[str] = None,
                    error: Optional[str] = None) -> PortraitStudio:
    if not (studio.analysis.in_flight and studio.analysis.seq == ticket):
        return studio

    seq = studio.seq + 1
    if error is not None:
        return replace(studio, analysis=settled_err(error, seq), seq=seq)
    return replace(
        studio,
        face_description=description or '',
        analysis=settled_ok(description, seq),
        generation=_drop_error(studio.generation),
        notice=idle(),
        seq=seq,
    )


def begin_generation(studio: PortraitStudio) -> Transition:
    if studio.generation.in_flight:
        return studio, False, MSG_GENERATION_RUNNING
    if not studio.face_description.strip():
        return studio, False, MSG_DESCRIPTION_FIRST
    if not studio.scene_prompt.strip():
        return studio, False, MSG_SCENE_REQUIRED

    seq = studio.seq + 1
    return replace(
        studio,
        generation=in_flight(seq),
        analysis=_drop_error(studio.analysis),
        notice=idle(),
        seq=seq,
    ), True, None


def settle_generation(studio: PortraitStudio, ticket: int,
                      image: Optional[str] = None,
                      error: Optional[str] = None) -> PortraitStudio:
    if not (studio.generation.in_flight and studio.generation.seq == ticket):
        return studio

    seq = studio.seq + 1
    if error is not None:
        return replace(studio, generation=settled_err(error, seq), seq=seq)
    return replace(
        studio,
        generation=settled_ok(image, seq),
        analysis=_drop_error(studio.analysis),
        notice=idle(),
        seq=seq,
    )


def reset_portrait(studio: PortraitStudio) -> PortraitStudio:
    # keep the counter so tickets of abandoned requests never match again
    return PortraitStudio(seq=studio.seq + 1)


# Playground studio

def set_playground_prompt(studio: PlaygroundStudio, text: str) -> PlaygroundStudio:
    return replace(studio, prompt=text or '', generation=_drop_settled(studio.generation))


def begin_playground(studio: PlaygroundStudio) -> Transition:
    if studio.generation.in_flight:
        return studio, False, MSG_GENERATION_RUNNING
    if not studio.prompt.strip():
        return studio, False, MSG_PROMPT_REQUIRED

    seq = studio.seq + 1
    return replace(studio, generation=in_flight(seq), seq=seq), True, None


def settle_playground(studio: PlaygroundStudio, ticket: int,
                      image: Optional[str] = None,
                      error: Optional[str] = None) -> PlaygroundStudio:
    if not (studio.generation.in_flight and studio.generation.seq == ticket):
        return studio

    seq = studio.seq + 1
    if error is not None:
        return replace(studio, generation=settled_err(error, seq), seq=seq)
    return replace(studio, generation=settled_ok(image, seq), seq=seq)


def reset_playground(studio: PlaygroundStudio) -> PlaygroundStudio:
    return PlaygroundStudio(seq=studio.seq + 1)


# Views

def portrait_view(studio: PortraitStudio) -> Dict[str, Any]:
    upload = studio.upload
    return {
        'has_image': upload is not None,
        'image_preview': upload.preview_url if upload else None,
        'image_size_bytes': upload.size_bytes if upload else None,
        'face_description': studio.face_description,
        'scene_prompt': studio.scene_prompt,
        'generated_image': studio.generated_image,
        'is_analyzing': studio.analysis.in_flight,
        'is_generating': studio.generation.in_flight,
        'can_analyze': studio.can_analyze,
        'can_generate': studio.can_generate,
        'error': visible_error(studio),
    }


def playground_view(studio: PlaygroundStudio) -> Dict[str, Any]:
    return {
        'prompt': studio.prompt,
        'generated_image': studio.generated_image,
        'is_generating': studio.generation.in_flight,
        'can_generate': studio.can_generate,
        'error': visible_error(studio),
    }


def session_view(session: StudioSession) -> Dict[str, Any]:
    return {
        'portrait': portrait_view(session.portrait),
        'playground': playground_view(session.playground),
    }
