"""HTTP API for StudyQuest"""
