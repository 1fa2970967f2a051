#!/usr/bin/env python3
"""Insert sample published articles, videos and FAQs."""

import argparse
import sys

import database
from content import article_service, derive_article_fields, faq_service, video_service
from database import ARTICLES, FAQS, VIDEOS
from logger import setup_logger
from schemas import FAQ, Article, Video

SAMPLE_ARTICLES = [
    {
        "title": "Getting Started with BrainHints",
        "content": (
            "<p>Welcome to BrainHints! This comprehensive guide will help you get started with our platform. "
            "BrainHints is designed to provide you with the best learning and support experience through "
            "articles, videos, and FAQs.</p>"
        ),
        "excerpt": "Learn how to get started with BrainHints and make the most of our platform.",
        "category": "Getting Started",
        "tags": ["introduction", "guide", "start"],
        "views": 45,
    },
    {
        "title": "Advanced Features and Tools",
        "content": (
            "<p>Explore the advanced features that BrainHints offers to enhance your learning experience. "
            "From interactive tutorials to personalized recommendations, learn how to leverage our tools "
            "for maximum productivity.</p>"
        ),
        "excerpt": "Discover the powerful features that make BrainHints stand out from other platforms.",
        "category": "Features",
        "tags": ["features", "advanced", "tools"],
        "views": 23,
    },
    {
        "title": "Troubleshooting Common Issues",
        "content": (
            "<p>Having trouble with BrainHints? This article covers the most common issues users face and "
            "provides step-by-step solutions to get you back on track quickly and efficiently.</p>"
        ),
        "excerpt": "Find solutions to the most common issues you might encounter while using BrainHints.",
        "category": "Troubleshooting",
        "tags": ["troubleshooting", "help", "solutions"],
        "views": 67,
    },
]

SAMPLE_VIDEOS = [
    {
        "title": "BrainHints Platform Overview",
        "description": (
            "A comprehensive walkthrough of the BrainHints platform, covering all the key features and how "
            "to navigate the interface effectively."
        ),
        "url": "https://example.com/video1",
        "category": "Getting Started",
        "duration": "5:30",
        "tags": ["overview", "tutorial", "beginner"],
        "views": 134,
    },
    {
        "title": "Advanced Search Techniques",
        "description": "Learn how to use the advanced search features to find exactly what you need quickly and efficiently.",
        "url": "https://example.com/video2",
        "category": "Features",
        "duration": "7:15",
        "tags": ["search", "advanced", "tutorial"],
        "views": 89,
    },
    {
        "title": "Quick Tips and Tricks",
        "description": "Discover some handy tips and tricks to make your experience with BrainHints even better.",
        "url": "https://example.com/video3",
        "category": "Tips",
        "duration": "3:45",
        "tags": ["tips", "tricks", "productivity"],
        "views": 156,
    },
]

SAMPLE_FAQS = [
    {
        "question": "How do I create an account?",
        "answer": (
            "Creating an account is simple! Click on the 'Sign Up' button in the top right corner, fill in "
            "your details, and verify your email address. You'll be ready to explore BrainHints in minutes."
        ),
        "category": "Account",
        "tags": ["account", "signup", "registration"],
        "views": 78,
    },
    {
        "question": "Can I access BrainHints on mobile devices?",
        "answer": (
            "Yes! BrainHints is fully responsive and works on mobile devices, tablets, and desktop computers. "
            "Your progress syncs automatically across all your devices."
        ),
        "category": "Technical",
        "tags": ["mobile", "responsive", "devices"],
        "views": 45,
    },
    {
        "question": "How do I reset my password?",
        "answer": (
            "If you've forgotten your password, click on 'Forgot Password' on the login page. Enter your email "
            "address, and we'll send you a secure link to reset your password."
        ),
        "category": "Account",
        "tags": ["password", "reset", "security"],
        "views": 92,
    },
    {
        "question": "Is my data secure?",
        "answer": (
            "We use industry-standard encryption and security measures to protect your data. Your information "
            "is never shared with third parties."
        ),
        "category": "Security",
        "tags": ["security", "privacy", "data"],
        "views": 67,
    },
]


def seed(reset: bool = False) -> dict:
    if reset:
        for name in (ARTICLES, VIDEOS, FAQS):
            database.db[name].delete_many({})

    for sample in SAMPLE_ARTICLES:
        article = Article(**derive_article_fields(sample), status="published")
        article_service.create(article.model_dump())
    for sample in SAMPLE_VIDEOS:
        video_service.create(Video(**sample, author="Admin", status="published").model_dump())
    for sample in SAMPLE_FAQS:
        faq_service.create(FAQ(**sample, status="published").model_dump())

    return {"articles": len(SAMPLE_ARTICLES), "videos": len(SAMPLE_VIDEOS), "faqs": len(SAMPLE_FAQS)}


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Insert sample BrainHints content.")
    parser.add_argument("--reset", action="store_true", help="Delete existing articles, videos and FAQs first")
    args = parser.parse_args(argv)

    setup_logger()
    counts = seed(reset=args.reset)
    print(f"Inserted {counts['articles']} articles, {counts['videos']} videos and {counts['faqs']} FAQs.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
