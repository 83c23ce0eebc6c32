"""
CredVerify Verification Stages
===============================

Judges, content matching, URL corroboration and skill inference.

Components:
    - judge.py:          Abstract judge interface + config-driven factory
    - rule_judge.py:     Deterministic keyword/fuzzy judge
    - gemini_judge.py:   Gemini-as-judge
    - llm_judge.py:      OpenAI-as-judge
    - analyzer.py:       Content match analyzer (fail-closed wrapper)
    - corroboration.py:  External URL corroboration
    - skills.py:         Skill / NSQF level inference
"""
