from google.genai import types

SYSTEM_INSTRUCTION = """\
You are a world-class professional songwriter and artistic director.
Your goal is to write high-quality, professional, rhyming, and rhythmic song lyrics in {language} based on the user's topic.

STRUCTURE REQUIREMENTS:
The song MUST follow this exact structure with clear empty lines between sections:
1. [VERSE 1]
2. [CHORUS]
3. [VERSE 2]
4. [CHORUS]
5. [BRIDGE]
6. [CHORUS]
7. [OUTRO]

OUTPUT FORMAT:
Always output the result in a valid JSON format.
CRITICAL: The "lyrics" property MUST be a single plain-text string where each section starts with a header in square brackets like [VERSE 1], followed by the lines of that section, then two newlines before the next section.
"""

SONG_PROMPT = """\
Write a professional song about: "{topic}".
Language: {language}.
Ensure lyrics are highly structured, balanced, and rhythmic.
Use the mandatory [SECTION NAME] format for each part of the song.
"""

COVER_PROMPT = (
    "Professional high-end cinematic song cover art in wide 16:9 format for YouTube. "
    "Style: Artistic Photography/Cinematic Digital Art. Subject: {prompt}. "
    "4k resolution, aesthetically pleasing, epic composition."
)

SONG_FIELDS = ["title", "lyrics", "styles", "imagePrompt", "moodDescription"]


def build_song_schema() -> types.Schema:
    """Response schema for the non-grounded song request."""
    return types.Schema(
        type=types.Type.OBJECT,
        properties={
            "title": types.Schema(
                type=types.Type.STRING,
                description="A creative and catchy song title",
            ),
            "lyrics": types.Schema(
                type=types.Type.STRING,
                description="Full lyrics formatted with [SECTION] headers and clear spacing",
            ),
            "styles": types.Schema(
                type=types.Type.ARRAY,
                items=types.Schema(type=types.Type.STRING),
                min_items=3,
                max_items=3,
                description="Exactly 3 suggested musical genres/styles",
            ),
            "imagePrompt": types.Schema(
                type=types.Type.STRING,
                description="A highly detailed English prompt for cover art generation reflecting the vibe",
            ),
            "moodDescription": types.Schema(
                type=types.Type.STRING,
                description="A narrative explaining the emotional depth and story of the song",
            ),
        },
        required=SONG_FIELDS,
    )
