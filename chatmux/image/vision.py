"""Vision-model connector for image description and explanation.

Two uses:
    - `describe_image`: one-shot technical description folded into the
      user prompt of an image-analysis chat turn.
    - `classify_image` + `explain_image`: two-stage explanation of uploaded
      images. Stage one asks for MATH / QUESTION / IMAGE; stage two sends the
      category-specific prompt with category-specific sampling.

Transport:
    Gemini `generateContent` REST endpoint via `requests`, key passed as the
    `key` query parameter, image sent as `inline_data`.

Failure handling:
    Every provider failure is wrapped in `VisionError` internally and replaced
    by a canned value at the public boundary:
    - description -> `DESCRIPTION_FALLBACK`
    - classification -> `ImageCategory.IMAGE`
    - explanation -> the category's canned explanation
"""

import logging

import requests

from chatmux.config import ClientConfig
from chatmux.core.messages import split_data_url
from chatmux.nlp.keyword_classifier import ImageCategory, parse_image_category


logger = logging.getLogger(__name__)


class VisionError(RuntimeError):
    """Vision provider call failed or returned no text."""


DESCRIPTION_FALLBACK = "Unable to analyze the image content."

DESCRIBE_PROMPT = (
    "You are an image analysis assistant. Please analyze this image and provide a "
    "detailed description of what you see. Focus on any code, diagrams, or technical "
    "content visible in the image."
)

CLASSIFY_PROMPT = """Analyze this image and determine what type of content it contains. Look carefully for:
- Mathematical equations, problems, or homework
- Academic questions from any subject
- Text-based questions or problems
- General images without questions

Respond with ONLY one word:
- MATH if it contains math problems/equations
- QUESTION if it contains non-math questions
- IMAGE if it's a general image without questions

Just respond with one word: MATH, QUESTION, or IMAGE"""

EXPLAIN_PROMPTS = {
    ImageCategory.MATH: """This image contains a math question or problem. Please:

**SOLVE THE MATH PROBLEM STEP BY STEP:**

1. **Read the problem carefully** - Identify what is being asked
2. **Show your work** - Write out each calculation step
3. **Provide the final answer** - Clearly state the solution
4. **Check your work** - Verify the answer makes sense

If there are multiple problems, solve each one separately and clearly label your answers.

**Focus on accuracy and clear mathematical reasoning. Be direct and concise.**""",
    ImageCategory.QUESTION: """This image contains a question that needs to be answered. Please:

**ANSWER THE QUESTION DIRECTLY:**

1. **Read the question carefully** - Understand what is being asked
2. **Provide accurate answers** - Give direct, correct responses
3. **Multiple choice** - If it's multiple choice, state the correct option clearly
4. **Multiple questions** - Answer all questions if there are several
5. **Be concise** - Focus on answering, not explaining the image

**Provide helpful, accurate answers to the questions shown.**""",
    ImageCategory.IMAGE: """Please analyze this image in detail and provide a comprehensive explanation. Include:

1. **Overall Description**: What is the main subject or scene in the image?
2. **Visual Elements**: Describe colors, lighting, composition, and style
3. **Objects and Details**: List and describe all visible objects, people, or elements
4. **Setting and Context**: Where does this appear to be taken? What's the environment?
5. **Mood and Atmosphere**: What feeling or mood does the image convey?
6. **Technical Aspects**: Note any interesting photographic or artistic techniques
7. **Additional Observations**: Any other noteworthy details or interesting aspects

Please be thorough and engaging in your analysis, as if you're helping someone who cannot see the image understand it completely.""",
}

CANNED_EXPLANATIONS = {
    ImageCategory.MATH: """**MATH PROBLEM DETECTED**

I can see this image contains a mathematical problem, but I couldn't reach the analysis service to solve it right now.

Here's how I approach these problems:
- Identify the problem type (equation, word problem, geometry, algebra, calculus)
- Apply the appropriate method and show each calculation step
- Clearly state the final answer, with units where applicable

*Please try again in a moment and I'll solve the actual problem for you.*""",
    ImageCategory.QUESTION: """**QUESTION DETECTED**

I can see this image contains questions, but I couldn't reach the analysis service to answer them right now.

Here's how I handle them:
- Multiple choice: identify the correct option with clear reasoning
- Short answer: direct, accurate responses
- Essay questions: structured answers with the key points organized

*Please try again in a moment and I'll provide the actual answers.*""",
    ImageCategory.IMAGE: """**IMAGE ANALYSIS**

I can see you've uploaded an image, but I couldn't reach the analysis service right now.

Here's what I can do once it's available:
- Math problems: solve equations step by step
- Questions: answer multiple choice and short-answer questions
- General images: describe visual elements in detail

*Please try again in a moment.*""",
}

# (temperature, top_k, top_p) per category.
SAMPLING = {
    ImageCategory.MATH: (0.2, 5, 0.7),
    ImageCategory.QUESTION: (0.2, 5, 0.7),
    ImageCategory.IMAGE: (0.7, 32, 0.95),
}


def _generate_content(
    prompt: str,
    data_url: str,
    config: ClientConfig,
    generation_config: dict,
) -> str:
    """Send one prompt + image to the vision endpoint and return its text.

    Raises:
        VisionError: Missing key, bad data URL, transport, status, or shape failure.
    """
    if not config.vision_api_key:
        raise VisionError("Vision API key not configured")

    try:
        mime_type, payload = split_data_url(data_url)
    except ValueError as err:
        raise VisionError(str(err)) from err

    body = {
        "contents": [{
            "parts": [
                {"text": prompt},
                {"inline_data": {"mime_type": mime_type, "data": payload}},
            ],
        }],
        "generation_config": generation_config,
    }

    try:
        response = requests.post(
            config.vision_url,
            params={"key": config.vision_api_key},
            headers={"Content-Type": "application/json"},
            json=body,
            timeout=config.completion_timeout_seconds,
        )
        response.raise_for_status()
        data = response.json()
    except requests.exceptions.RequestException as err:
        raise VisionError(f"Vision request failed: {err}") from err
    except ValueError as err:
        raise VisionError("Vision response was not valid JSON") from err

    try:
        text = data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError) as err:
        raise VisionError("Vision response contained no text") from err

    if not isinstance(text, str) or not text.strip():
        raise VisionError("Vision response contained no text")
    return text.strip()


def describe_image(data_url: str, config: ClientConfig) -> str:
    """Technical description of one image, or `DESCRIPTION_FALLBACK`."""
    try:
        return _generate_content(
            DESCRIBE_PROMPT,
            data_url,
            config,
            {"temperature": 0.4, "top_p": 0.95, "max_output_tokens": 1024},
        )
    except VisionError as err:
        logger.warning("Image description failed: %s", err)
        return DESCRIPTION_FALLBACK


def classify_image(data_url: str, config: ClientConfig) -> ImageCategory:
    """Classify image content as MATH, QUESTION, or IMAGE (default on failure)."""
    try:
        reply = _generate_content(
            CLASSIFY_PROMPT,
            data_url,
            config,
            {"temperature": 0.0, "max_output_tokens": 8},
        )
    except VisionError as err:
        logger.warning("Image classification failed: %s", err)
        return ImageCategory.IMAGE
    return parse_image_category(reply)


def explain_image(data_url: str, category: ImageCategory, config: ClientConfig) -> str:
    """Explain an image with the category's prompt and sampling.

    Returns:
        Provider text, or the category's canned explanation on failure.
    """
    temperature, top_k, top_p = SAMPLING[category]
    try:
        return _generate_content(
            EXPLAIN_PROMPTS[category],
            data_url,
            config,
            {
                "temperature": temperature,
                "top_k": top_k,
                "top_p": top_p,
                "max_output_tokens": 8192,
            },
        )
    except VisionError as err:
        logger.warning("Image explanation failed (%s): %s", category.value, err)
        return CANNED_EXPLANATIONS[category]
