"""
Intent Parsing Prompts

This module contains ALL the prompts used by the primary intent parser.
No prompts should exist outside this file.
"""

from typing import Iterable, Optional

from cal_availability.engine.utils.datetime_utils import format_rejected_times

DATE_PARSING_PROMPT = """You are a precise date/time parser for a calendar booking system.

**Current Context:**
- Current time: {current_time}
- Timezone: {timezone}
{rejected_line}
**User Query:** "{user_query}"

**Your Task:**
Parse the user's natural language query into a specific date/time range. Return JSON with:
1. startTime: Beginning of the desired time range (ISO 8601)
2. endTime: End of the desired time range (ISO 8601)
3. interpretation: Brief explanation of your parsing
4. confidence: Score 0.0-1.0 indicating certainty

**Parsing Rules:**

1. **Relative Dates:**
   - "today" → today's date
   - "tomorrow" → current date + 1 day
   - "next Tuesday", "this Friday" → upcoming day of week
   - "in 2 days", "3 days from now" → current date + N days
   - "next week" → 7 days from now

2. **Absolute Dates:**
   - "March 31st" → March 31 of current year (or next year if past)
   - "12/25", "Dec 25" → December 25
   - "March 31st 2026" → specific year

3. **Time Expressions:**
   - "morning" → 9:00 AM - 12:00 PM
   - "around lunch" / "lunchtime" → 11:30 AM - 1:30 PM
   - "afternoon" → 1:00 PM - 5:00 PM
   - "evening" → 5:00 PM - 8:00 PM
   - "same time" → use current hour from context
   - Specific times: "2pm", "14:00", "2:30pm"

4. **Default Ranges:**
   - If no time specified → assume 9:00 AM - 5:00 PM (business hours)
   - If only start time → end time = start + 1 hour
   - Be conservative: prefer 1-2 hour ranges

5. **Rejected Times:**
   - These are ISO 8601 timestamps (comma-separated) that the user has already declined
   - Do NOT suggest times that match or overlap with rejected times
   - Avoid suggesting times within 30 minutes of rejected slots
   - Consider these as unavailable when interpreting the user's query

6. **Confidence Scoring:**
   - 0.9-1.0: Explicit date + time ("tomorrow at 2pm")
   - 0.7-0.9: Explicit date, implied time ("tomorrow afternoon")
   - 0.5-0.7: Relative date with time phrase ("in a few days around lunch")
   - 0.3-0.5: Vague query ("sometime next week")
   - 0.0-0.3: Unparseable or ambiguous

**Output Format (MUST be valid JSON):**
{{
  "startTime": "2025-10-31T14:00:00-04:00",
  "endTime": "2025-10-31T15:00:00-04:00",
  "interpretation": "User requested tomorrow afternoon, suggesting 2-3pm",
  "confidence": 0.85
}}

**Critical:**
- All times MUST include timezone offset matching {timezone}
- All times MUST be in ISO 8601 format
- Return ONLY the JSON object, no additional text"""


def build_date_parsing_prompt(
    current_time: str,
    timezone: str,
    user_query: str,
    rejected_times: Optional[Iterable[str]] = None,
    prompt_template: Optional[str] = None,
) -> str:
    """
    Build the prompt for date/time parsing.

    A caller-supplied template replaces the built-in prompt; its
    {currentTime}, {timezone}, {userQuery} and {rejectedTimes} placeholders
    are substituted verbatim (other braces are left alone).
    """
    rejected = format_rejected_times(rejected_times)

    if prompt_template:
        return (
            prompt_template
            .replace("{currentTime}", current_time)
            .replace("{timezone}", timezone)
            .replace("{userQuery}", user_query)
            .replace("{rejectedTimes}", rejected)
        )

    rejected_line = f"- Previously rejected times (AVOID these): {rejected}\n" if rejected else ""

    return DATE_PARSING_PROMPT.format(
        current_time=current_time,
        timezone=timezone,
        user_query=user_query,
        rejected_line=rejected_line,
    )
