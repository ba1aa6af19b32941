"""NiceGUI chat interface rendering controller state."""

import logging

from nicegui import events, ui

from delfin_chat.attachments import ImageAttachmentError, load_image
from delfin_chat.chat import ChatController
from delfin_chat.models import ChatState, ImageAttachment, Message, Role

logger = logging.getLogger(__name__)

CUSTOM_CSS = """
<link href="https://fonts.googleapis.com/css2?family=Inter:wght@400;500;600&display=swap"
      rel="stylesheet">
<style>
    * { font-family: 'Inter', sans-serif; }
    body { background: #f1f5f9; min-height: 100vh; }

    .app-container {
        background: white;
        border-radius: 12px;
        box-shadow: 0 2px 8px rgba(0, 0, 0, 0.1);
        overflow: hidden;
    }
    .header { background: linear-gradient(135deg, #0ea5e9 0%, #2563eb 100%); }

    .message-user {
        background: #2563eb;
        color: white;
        border-radius: 18px 18px 4px 18px;
    }
    .message-assistant {
        background: #f3f4f6;
        color: #1f2937;
        border-radius: 18px 18px 18px 4px;
    }

    .typing-dot {
        width: 8px; height: 8px;
        background: #0ea5e9;
        border-radius: 50%;
        animation: bounce 1.4s infinite ease-in-out;
    }
    .typing-dot:nth-child(2) { animation-delay: 0.2s; }
    .typing-dot:nth-child(3) { animation-delay: 0.4s; }
    @keyframes bounce {
        0%, 60%, 100% { transform: translateY(0); }
        30% { transform: translateY(-6px); }
    }

    .input-box {
        background: #f9fafb;
        border: 1px solid #e5e7eb;
        border-radius: 12px;
    }
    .input-box:focus-within { border-color: #2563eb; }
    .message-assistant pre { margin: 0.5rem 0; overflow-x: auto; }
</style>
"""


@ui.page("/")
def chat_page() -> None:
    """Main chat page. Each browser tab gets its own controller."""
    ui.add_head_html(CUSTOM_CSS)
    controller = ChatController()
    pending_images: list[ImageAttachment] = []

    messages_container: ui.column
    error_banner: ui.row
    error_label: ui.label
    attachments_row: ui.row
    input_field: ui.textarea
    send_btn: ui.button
    rendered_ids: list[str] = []
    reply_markdown: dict[str, ui.markdown] = {}

    def render_typing_indicator() -> None:
        with ui.element("div").classes("message-assistant px-4 py-3"):
            with ui.row().classes("gap-1 items-center"):
                for _ in range(3):
                    ui.element("div").classes("typing-dot")

    def render_message(msg: Message) -> None:
        is_user = msg.role == Role.USER
        align = "justify-end" if is_user else "justify-start"
        bubble = "message-user" if is_user else "message-assistant"

        with ui.row().classes(f"w-full {align}"):
            with ui.column().classes("max-w-[75%] gap-1"):
                if msg.is_loading:
                    render_typing_indicator()
                    return
                for image in msg.images or []:
                    ui.image(image.preview_url).classes("w-40 rounded-lg")
                if msg.content:
                    with ui.element("div").classes(f"px-4 py-3 {bubble}"):
                        if is_user:
                            ui.label(msg.content).classes("text-sm whitespace-pre-wrap")
                        else:
                            reply_markdown[msg.id] = ui.markdown(msg.content).classes("text-sm")
                ui.label(msg.timestamp.strftime("%I:%M %p")).classes(
                    f"text-[10px] text-gray-400 {'self-end' if is_user else 'self-start'}"
                )

    def refresh_messages(state: ChatState) -> None:
        messages_container.clear()
        reply_markdown.clear()
        rendered_ids[:] = [m.id for m in state.messages]
        with messages_container:
            if not state.messages:
                with ui.column().classes("w-full h-64 items-center justify-center gap-3"):
                    ui.icon("forum").classes("text-5xl text-gray-300")
                    ui.label("Start a conversation").classes("text-lg text-gray-400")
            for msg in state.messages:
                render_message(msg)

    def on_state(state: ChatState) -> None:
        last = state.messages[-1] if state.messages else None
        same_layout = rendered_ids == [m.id for m in state.messages]
        if same_layout and last is not None and last.id in reply_markdown:
            # Streaming into an already rendered reply
            reply_markdown[last.id].set_content(last.content)
        else:
            refresh_messages(state)

        error_label.set_text(state.error or "")
        error_banner.set_visibility(state.error is not None)
        send_btn.set_enabled(not state.is_loading)

    def refresh_attachments() -> None:
        attachments_row.clear()
        with attachments_row:
            for image in pending_images:
                with ui.element("div").classes("relative"):
                    ui.image(image.preview_url).classes("w-16 h-16 rounded")
                    ui.button(
                        icon="close",
                        on_click=lambda _, i=image: remove_attachment(i),
                    ).props("flat round dense size=xs").classes("absolute top-0 right-0")
        attachments_row.set_visibility(bool(pending_images))

    def remove_attachment(image: ImageAttachment) -> None:
        pending_images.remove(image)
        refresh_attachments()

    async def handle_upload(e: events.UploadEventArguments) -> None:
        try:
            image = load_image(await e.file.read(), e.file.name, e.file.content_type)
        except ImageAttachmentError as err:
            ui.notify(str(err), type="warning")
            return
        pending_images.append(image)
        refresh_attachments()

    async def send_message() -> None:
        text = input_field.value or ""
        images = list(pending_images)
        if (not text.strip() and not images) or controller.is_loading:
            return

        input_field.value = ""
        pending_images.clear()
        refresh_attachments()
        await controller.send_message(text, images or None)

    async def retry() -> None:
        await controller.retry_last_message()

    # === UI Layout ===
    with (
        ui.element("div").classes("w-full min-h-screen p-4 md:p-8"),
        ui.column().classes("w-full max-w-3xl mx-auto app-container").style(
            "height: calc(100vh - 4rem)"
        ),
    ):
        # Header
        with ui.row().classes("w-full header px-5 py-4 items-center justify-between"):
            with ui.row().classes("items-center gap-3"):
                ui.icon("smart_toy").classes("text-white text-3xl")
                ui.label("Delfin Chat").classes("text-lg font-semibold text-white")
            ui.button(icon="add", on_click=controller.clear_chat).props(
                "flat round color=white"
            ).tooltip("New chat")

        # Messages
        with (
            ui.scroll_area().classes("flex-grow w-full bg-gray-50"),
            ui.column().classes("w-full p-5"),
        ):
            messages_container = ui.column().classes("w-full gap-4")

        # Error banner
        with ui.row().classes(
            "w-full px-4 py-2 items-center justify-between bg-red-50 text-red-700"
        ) as error_banner:
            error_label = ui.label().classes("text-sm")
            with ui.row().classes("gap-2"):
                ui.button("Retry", icon="refresh", on_click=retry).props("flat dense color=red")
                ui.button(icon="close", on_click=controller.dismiss_error).props(
                    "flat round dense color=red"
                )

        # Input
        with ui.column().classes("w-full p-4 gap-2 bg-white border-t"):
            attachments_row = ui.row().classes("gap-2")
            with ui.row().classes("w-full gap-3 items-end"):
                ui.upload(
                    on_upload=handle_upload,
                    multiple=True,
                    auto_upload=True,
                ).props("accept=image/* flat dense hide-upload-btn").classes("w-24")
                with ui.element("div").classes("flex-grow input-box px-3 py-2"):
                    input_field = (
                        ui.textarea(placeholder="Message Delfin...")
                        .props("autogrow borderless dense rows=1")
                        .classes("w-full")
                        .on("keydown.enter.prevent", send_message)
                    )
                send_btn = ui.button(icon="send", on_click=send_message).props(
                    "round unelevated color=primary"
                )

    controller.subscribe(on_state)
    on_state(controller.state)
    refresh_attachments()
