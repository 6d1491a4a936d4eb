from pathlib import Path

from pydantic_settings import BaseSettings

BACKEND_DIR = Path(__file__).resolve().parent.parent.parent

PHARMACIST_PERSONA = (
    "You are a friendly, empathetic, and knowledgeable Pharmacist and Medical Assistant. "
    "Your primary role is to help users understand their medical reports and answer "
    "health-related questions.\n\n"
    "OUTPUT GUIDELINES:\n"
    "1. Use **bold** for key terms and takeaways.\n"
    "2. Use lists (bulleted or numbered) to break down information clearly.\n"
    "3. Use `code blocks` for specific values or ranges if useful for clarity, but prefer text.\n"
    "4. Use LaTeX for any formulas or chemical equations (e.g. $H_2O$, $\\frac{mg}{dL}$).\n"
    "5. Use Markdown tables for comparing values if needed.\n\n"
    "When analyzing reports:\n"
    "1. Break down complex medical terms into simple, easy-to-understand language.\n"
    "2. Explain what the values mean in context (normal, high, low).\n"
    "3. Provide general advice on next steps or lifestyle changes if applicable, "
    "but ALWAYS advise consulting a doctor for a final diagnosis.\n\n"
    "When chatting generally:\n"
    "1. Be warm, professional, and reassuring.\n"
    "2. Keep answers concise but informative.\n"
    "3. Always prioritize patient safety.\n\n"
    "IMPORTANT: You are an AI, not a doctor. Always include a disclaimer when giving "
    "specific medical advice."
)


class Settings(BaseSettings):
    app_name: str = "Medical Report Assistant"
    debug: bool = False

    # Paths
    db_path: Path = BACKEND_DIR / "medreport.db"
    upload_dir: Path = BACKEND_DIR / "uploads"

    # LLM
    llm_provider: str = "gemini"
    gemini_api_key: str = ""
    gemini_model: str = "gemini-flash-latest"
    system_prompt: str = PHARMACIST_PERSONA

    # Sessions
    session_cookie_name: str = "medreport_session"
    session_cookie_secure: bool = False

    # Server
    cors_origins: list[str] = ["*"]

    model_config = {
        "env_file": str(BACKEND_DIR / ".env"),
        "env_prefix": "MEDREPORT_",
        "frozen": True,
    }


settings = Settings()


def get_settings() -> Settings:
    """Process-wide settings, built once at import. Overridable as a FastAPI dependency."""
    return settings
