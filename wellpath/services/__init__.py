"""Wellpath services.

- assessment_service: instrument catalog and questionnaire scoring
- trend_service: metric trend analysis and insight generation
- access_service: instrument visibility and clinician-only assignment

Every computation is a pure function of in-memory inputs. Fetching history
and storing responses belong to the persistence collaborator.
"""
