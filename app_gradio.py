import logging

import gradio as gr
import openai

from iris_agent.config import AgentSettings, configure_logging
from iris_agent.errors import AgentRunError
from iris_agent.runner import run_agent
from iris_agent.serialization import dumps
from iris_agent.state import SessionContext
from iris_analysis.errors import DataLoadError
from iris_analysis.manipulation.exec import data_info
from iris_analysis.shared.data_access import load_iris

logger = logging.getLogger(__name__)

SETTINGS = AgentSettings()

# ------------- Helpers -------------

def _new_session():
    """Fresh (SessionContext, agent history, compact UI summary) for a new chat."""
    df = load_iris(SETTINGS.iris_csv_path)
    info = data_info(df)
    species = ", ".join(info["unique_species"])
    ui_summary = (
        f"Total rows: {info['total_rows']:,}\n\n"
        f"Columns: {', '.join(info['columns'])}\n\n"
        f"Species ({info['species_count']}): {species}"
    )
    return SessionContext(primary=df), [], ui_summary


def _format_reply(reply) -> str:
    if reply is None:
        return "(No response)"
    if isinstance(reply, str):
        return reply
    return f"```json\n{dumps(reply)}\n```"


# ------------- Gradio Callbacks -------------

def reset_session():
    """Start over: new dataset context, empty agent history, empty chat."""
    context, history, ui_summary = _new_session()
    return ui_summary, context, history, []


def respond(message, chat_history_display, context, agent_history):
    """Main chat handler: append user msg, run agent, return assistant reply."""
    if not message or not message.strip():
        yield "", chat_history_display, context, agent_history, gr.update(interactive=True)
        return

    # Optimistic UI: show "Thinking..."
    chat_history_display.append({"role": "user", "content": message})
    chat_history_display.append({"role": "assistant", "content": "Thinking..."})
    yield "", chat_history_display, context, agent_history, gr.update(interactive=False)

    try:
        if context is None:
            context, agent_history, _ = _new_session()
        result = run_agent(message, agent_history, context=context, settings=SETTINGS)
        reply_text = _format_reply(result.reply)
        agent_history = result.history
    except DataLoadError as e:
        logger.error("Dataset unavailable: %s", e)
        reply_text = f"The Iris dataset could not be loaded: {e}"
    except AgentRunError as e:
        logger.error("Agent run failed after %d step(s): %s", len(e.steps), e)
        reply_text = f"Sorry, I could not complete that analysis ({e})."
    except openai.OpenAIError as e:
        logger.error("Model request failed: %s", e)
        reply_text = "The language model request failed. Check the API key and try again."

    # Replace the placeholder "Thinking..." with the real assistant text
    chat_history_display[-1] = {"role": "assistant", "content": reply_text}
    yield "", chat_history_display, context, agent_history, gr.update(interactive=True)


# ------------- Gradio UI -------------

with gr.Blocks(title="Iris Data Chat Assistant") as demo:
    gr.Markdown("#  Iris Data Chat Assistant")
    gr.Markdown(
        "Ask questions about the Iris flower dataset.\n\n"
        "**Supported analyses:**\n"
        "- Filtering, sorting, grouping and column selection\n"
        "- Descriptive statistics, percentiles and correlations\n"
        "- Cross-tabulations, frequency tables and group comparisons\n"
        "- Outliers (IQR / z-score) and confidence intervals\n"
        "- Feature importance and detailed species comparison\n"
    )

    with gr.Row():
        summary_output = gr.Markdown()
        new_chat = gr.Button("New chat")

    # Per-browser-session dataset context (iris / lastResult) and agent history
    context_state = gr.State(value=None)
    history_state = gr.State(value=[])

    chatbot = gr.Chatbot(label="Chat with the Iris dataset", type="messages")
    user_input = gr.Textbox(placeholder="e.g. What is the average petal length of each species?")

    demo.load(
        fn=reset_session,
        outputs=[summary_output, context_state, history_state, chatbot],
    )
    new_chat.click(
        fn=reset_session,
        outputs=[summary_output, context_state, history_state, chatbot],
    )

    # Wire chat submit -> respond (streaming via generator)
    user_input.submit(
        fn=respond,
        inputs=[user_input, chatbot, context_state, history_state],
        outputs=[user_input, chatbot, context_state, history_state, user_input],
        queue=True,
    )

# Run the app: the chat UI under /ui, next to the HTTP API
if __name__ == "__main__":
    import os

    import uvicorn

    from app_server import create_app

    configure_logging()
    app = gr.mount_gradio_app(create_app(), demo, path="/ui")
    uvicorn.run(app, host=os.getenv("SERVER_HOST", "127.0.0.1"), port=int(os.getenv("SERVER_PORT", "3000")))
