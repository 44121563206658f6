from pathlib import Path

from docflow.inference.exceptions import InferenceError

_DEFAULT_PROMPT_DIR = Path(__file__).parent / "prompts"


def load_prompt(name: str, prompt_dir: Path | None = None) -> str:
    """Load a task prompt by name.

    Args:
        name: Prompt name without suffix, e.g. "classify" loads classify_prompt.txt.
        prompt_dir: Directory holding the prompt files.
                    Defaults to the bundled prompts directory.

    Returns:
        The prompt text with surrounding whitespace removed.

    Raises:
        InferenceError: if the file cannot be read.
    """
    directory = prompt_dir if prompt_dir is not None else _DEFAULT_PROMPT_DIR
    path = directory / f"{name}_prompt.txt"
    try:
        return path.read_text(encoding="utf-8").strip()
    except OSError as exc:
        raise InferenceError(f"Failed to load prompt '{name}': {exc}") from exc
