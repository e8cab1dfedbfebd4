"""Prompt templates for script generation"""

from types import MappingProxyType

from .content_models import SEGMENT_DURATION, ScriptRequest, TransitionType

CATEGORY_DESCRIPTIONS = MappingProxyType({
    "Science & Technology": "Cutting-edge innovations, scientific discoveries, and technological advancements",
    "Sports & Fitness": "Athletic achievements, sports news, workout routines, and fitness tips",
    "Government & Politics": "Political developments, policy analysis, and governmental affairs",
    "Entertainment & Celebrities": "Movie releases, music updates, celebrity news, and pop culture trends",
    "Education & Learning": "Academic insights, learning resources, and educational methodologies",
    "Video Games & Esports": "Gaming industry news, esports tournaments, and gaming culture",
    "Travel & Tourism": "Destination guides, travel tips, cultural experiences, and adventure stories",
    "Health & Wellness": "Medical research, mental health, nutrition, and wellness practices",
    "World News": "Global current events, international relations, and worldwide developments",
    "Business & Finance": "Market analysis, entrepreneurship, financial advice, and industry trends",
    "Lifestyle & Culture": "Fashion, relationships, cultural phenomena, and modern living",
    "Art & Design": "Creative works, design trends, artistic movements, and visual culture",
    "Environment & Sustainability": "Climate change, conservation efforts, and sustainable practices",
    "Food & Cooking": "Recipes, culinary techniques, food culture, and cooking tips",
})

TONE_DESCRIPTIONS = MappingProxyType({
    "Professional/Formal": "Polished, business-appropriate language with emphasis on clarity and expertise",
    "Friendly/Casual": "Conversational style that builds rapport and feels approachable",
    "Inspirational/Motivational": "Uplifting content that encourages and empowers the audience",
    "Humorous/Witty": "Clever and entertaining approach with appropriate comic elements",
    "Empathetic/Compassionate": "Understanding and emotionally connected tone that resonates with feelings",
    "Analytical/Data-Driven": "Fact-based approach focusing on statistics, research, and analysis",
    "Persuasive/Argumentative": "Compelling content that presents clear arguments and calls to action",
    "Informative/Educational": "Clear, instructional tone focused on teaching and explaining concepts",
    "Storytelling/Narrative": "Engaging narrative style that creates emotional connections through stories",
    "Neutral/Objective": "Balanced, unbiased presentation of information without personal opinion",
    "Authoritative/Expert": "Confident, knowledgeable tone that establishes credibility and expertise",
    "Curious/Exploratory": "Inquisitive approach that encourages discovery and questioning",
})


def get_category_description(category: str) -> str:
    """Description for a category, the category itself when unknown"""
    return CATEGORY_DESCRIPTIONS.get(category, category)


def get_tone_description(tone: str) -> str:
    """Description for a tone, the tone itself when unknown"""
    return TONE_DESCRIPTIONS.get(tone, tone)


class PromptTemplates:
    """Collection of prompt templates for script generation"""

    @staticmethod
    def get_system_prompt(require_fact_checking: bool = False) -> str:
        """Fixed rules for every script request"""
        transitions = ", ".join(f"'{t.value}'" for t in TransitionType)

        prompt = f"""
You are a professional video script writer for social media shorts.
Generate a script with these exact requirements:
- Exactly {SEGMENT_DURATION} seconds per segment
- Fields for each segment:
  * id: Sequential number starting at 1
  * text: On-screen text, at least 10 characters, short enough to read in {SEGMENT_DURATION} seconds
  * duration: {SEGMENT_DURATION}
  * description: Visual context used to search stock footage, at least 5 characters
  * transition: One of: {transitions}

Output MUST be parseable JSON with exact structure:
{{
  "segments": [
    {{
      "id": 1,
      "text": "Segment text",
      "duration": {SEGMENT_DURATION},
      "description": "Visual description",
      "transition": "fade"
    }}
  ]
}}
Return only the JSON object, without markdown or commentary.
"""
        if require_fact_checking:
            prompt += """
Factual accuracy rules:
- Only state facts that are well established and verifiable
- Do not invent statistics, quotes, dates or names
- Prefer general statements over specific claims you are unsure of
"""
        return prompt.strip()

    @staticmethod
    def get_user_prompt(request: ScriptRequest) -> str:
        """Per-request instruction with topic, category, tone and segment count"""
        num_segments = request.segment_count
        key_terms = ", ".join(request.key_terms) if request.key_terms else "none"

        prompt = f"""
Create a {request.duration}-second {request.category} video about: {request.topic}
- Category: {request.category} ({get_category_description(request.category)})
- Tone: {request.tone} ({get_tone_description(request.tone)})
- Key terms to include: {key_terms}
- Total Segments: exactly {num_segments}
- Each Segment: {SEGMENT_DURATION} seconds

Ensure:
1. Engaging content for a {request.category} audience
2. {request.tone} tone throughout
3. Concrete visual descriptions that match each segment
4. Use the specified JSON output format
5. Varied, dynamic transitions between segments
"""
        if request.require_fact_checking:
            prompt += "6. Verify all facts before including them\n"
        return prompt.strip()
