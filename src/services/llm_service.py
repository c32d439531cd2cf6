#!/usr/bin/env python3
import os
import re
import logging
from typing import Dict, Any, Optional, List
import time
from datetime import datetime
from dotenv import load_dotenv
load_dotenv()
API_KEY = os.getenv("OPENAI_API_KEY")
MODEL = os.getenv("OPENAI_MODEL", "gpt-3.5-turbo")

from openai import OpenAI, OpenAIError
import sys
from pathlib import Path
sys.path.append(str(Path(__file__).parent.parent))

from models.automation import split_keywords

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class GenerationError(Exception):
    """The text generation call failed or produced nothing usable."""


class LLMService:

    def __init__(
        self,
        api_key: Optional[str] = API_KEY,
        model: str = MODEL,
        max_tokens: int = 2048,
        temperature: float = 0.7,
        timeout: float = 30.0,
        client: Optional[OpenAI] = None
    ):
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout
        # The client is built lazily so the service can be wired without a key
        self._api_key = api_key
        self._client = client
        self.system_prompt = (
            "You are an AI assistant specialised in technical support. "
            "Answer professionally and helpfully, in the language of the request."
        )
        self.usage_stats = self._empty_stats()

        logger.info(f"LLM service initialized with model: {model}")

    @staticmethod
    def _empty_stats() -> Dict[str, Any]:
        return {
            "total_requests": 0,
            "successful_requests": 0,
            "failed_requests": 0,
            "total_input_tokens": 0,
            "total_output_tokens": 0,
            "average_response_time": 0.0,
            "last_request_time": None
        }

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            if not self._api_key:
                raise GenerationError("OPENAI_API_KEY is not configured")
            self._client = OpenAI(api_key=self._api_key)
        return self._client

    def _normalize_content(self, content: Any) -> str:
        if content is None:
            return ""
        if isinstance(content, str):
            return content
        if isinstance(content, list):
            # join text parts (OpenAI can return [{"type": "text", "text": "..."}])
            return " ".join(
                part.get("text", "") if isinstance(part, dict) else str(part)
                for part in content
            )
        return str(content)

    def get_model_info(self) -> Dict[str, Any]:
        return {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "timeout": self.timeout
        }

    async def generate_response(self, prompt: str) -> str:
        """Send one prompt and return the stripped completion text.

        Raises GenerationError on transport errors and on empty output;
        callers decide on their own fallback text.
        """
        if not prompt or not prompt.strip():
            raise ValueError("Prompt cannot be empty")

        start_time = time.time()
        self.usage_stats["total_requests"] += 1

        try:
            completion = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": self.system_prompt},
                    {"role": "user", "content": prompt}
                ],
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                timeout=self.timeout
            )
            if not completion.choices:
                raise GenerationError("Completion returned no choices")
            response_text = self._normalize_content(completion.choices[0].message.content).strip()
        except OpenAIError as e:
            self.usage_stats["failed_requests"] += 1
            logger.error(f"Failed to generate response: {e}")
            raise GenerationError(str(e)) from e
        except GenerationError:
            self.usage_stats["failed_requests"] += 1
            raise

        if not response_text:
            self.usage_stats["failed_requests"] += 1
            raise GenerationError("Completion was empty")

        if completion.usage:
            self.usage_stats["total_input_tokens"] += completion.usage.prompt_tokens
            self.usage_stats["total_output_tokens"] += completion.usage.completion_tokens

        self.usage_stats["successful_requests"] += 1
        response_time = time.time() - start_time
        n = self.usage_stats["successful_requests"]
        current_avg = self.usage_stats["average_response_time"]
        self.usage_stats["average_response_time"] = (current_avg * (n - 1) + response_time) / n
        self.usage_stats["last_request_time"] = datetime.now().isoformat()

        logger.info(f"Response generated in {response_time:.2f}s ({len(response_text)} chars)")
        return response_text

    async def suggest_keywords(self, keyword: str) -> List[str]:
        """Ask for 3 to 5 short trigger keywords close to ``keyword``."""
        keyword = (keyword or "").strip()
        if not keyword:
            raise ValueError("Keyword cannot be empty")

        prompt = (
            "Here are one or more automation keywords used to detect a problem in a "
            f"support ticket: \"{keyword}\". Suggest only 3 to 5 short keywords, "
            "separated by commas, without sentences or descriptions."
        )
        result = await self.generate_response(prompt)

        existing = {part.lower() for part in split_keywords(keyword)}
        suggestions = []
        for candidate in re.split(r"[,;\n]", result):
            candidate = candidate.strip()
            if len(candidate) <= 1 or candidate.lower() in existing:
                continue
            if candidate not in suggestions:
                suggestions.append(candidate)
        return suggestions

    async def get_usage_stats(self) -> Dict[str, Any]:
        stats = self.usage_stats.copy()
        if stats["total_requests"] > 0:
            stats["success_rate"] = (stats["successful_requests"] / stats["total_requests"]) * 100
        else:
            stats["success_rate"] = 0
        stats["model_info"] = self.get_model_info()
        stats["timestamp"] = datetime.now().isoformat()
        return stats

    def reset_usage_stats(self):
        self.usage_stats = self._empty_stats()
