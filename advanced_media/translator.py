"""Comment translation using the Gemini API."""

import os

from rich.console import Console

from .config import Config
from .errors import TranslationError

console = Console()

# Import Gemini
try:
    from google import genai
    GEMINI_AVAILABLE = True
except ImportError:
    GEMINI_AVAILABLE = False


class GeminiTranslator:
    """
    Translates short texts with a Gemini model.

    The translator is optional: without the google-genai package or a
    GEMINI_API_KEY it reports itself unavailable and callers are expected
    to skip it rather than call translate().
    """

    def __init__(self, config: Config, api_key: str | None = None):
        self.config = config
        self._client = None
        self._model = config.translation_model

        gemini_key = api_key or os.getenv("GEMINI_API_KEY")
        if GEMINI_AVAILABLE and gemini_key:
            self._client = genai.Client(api_key=gemini_key)
            console.print(f"[green]✓[/green] Using {self._model} for comment translation")
        else:
            if not GEMINI_AVAILABLE:
                console.print("[yellow]Warning: google-genai not installed - translation disabled[/yellow]")
            else:
                console.print("[yellow]Warning: GEMINI_API_KEY not set - translation disabled[/yellow]")

    def is_available(self) -> bool:
        """Check if translation is available (Gemini client initialized)."""
        return self._client is not None

    def translate(self, text: str, target_lang: str) -> str:
        """
        Translate text into the target language.

        Args:
            text: Text to translate
            target_lang: Language code such as "en" or "ta"

        Returns:
            The translated text (the original text if the model returns nothing)

        Raises:
            TranslationError: If the translator is unavailable or the API call fails
        """
        if not self.is_available():
            raise TranslationError("Translation unavailable (API key missing)")
        if not text or not target_lang:
            return text

        prompt = f'Translate the following text to {target_lang}: "{text}"'

        try:
            response = self._client.models.generate_content(
                model=self._model,
                contents=prompt
            )
        except Exception as e:
            console.print(f"[red]Error translating text: {e}[/red]")
            raise TranslationError(str(e)) from e

        return (response.text or "").strip() or text
