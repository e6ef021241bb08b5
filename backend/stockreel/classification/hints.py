"""
Curated keyword tables driving the heuristics.

CATEGORY_HINTS is matched against filename tokens and path segments.
BEAUTY_SUBCATEGORY_HINTS resolves skincare/haircare/oralcare.
MODEL_CATEGORY_KEYWORDS maps image-model label words onto categories.

The Japanese entries are intentional: source folders and filenames are
frequently named in Japanese.
"""

from typing import Dict, List

from .models import BeautySubCategory, VideoCategory


CATEGORY_HINTS: Dict[VideoCategory, List[str]] = {
    VideoCategory.BEAUTY: [
        "beauty", "cosme", "cosmetic", "makeup", "skincare", "esthetic",
        "salon", "nail", "spa", "美", "美容", "コスメ", "メイク", "スキンケア",
    ],
    VideoCategory.FITNESS: [
        "fitness", "workout", "gym", "training", "exercise", "athlete",
        "yoga", "muscle", "run", "fit", "スポーツ", "筋トレ", "フィットネス",
        "ワークアウト", "ヨガ",
    ],
    VideoCategory.HAIRCARE: [
        "hair", "haircare", "haircut", "salon", "barber", "styling",
        "shampoo", "conditioner", "ヘア", "美容室", "サロン", "カット", "理容",
    ],
    VideoCategory.BUSINESS: [
        "business", "office", "corporate", "meeting", "presentation",
        "startup", "company", "work", "desk", "sales", "ビジネス", "オフィス",
        "会議", "企業", "仕事",
    ],
    VideoCategory.LIFESTYLE: [
        "lifestyle", "life", "daily", "home", "family", "travel", "cafe",
        "kitchen", "living", "relax", "日常", "ライフ", "暮らし",
        "ライフスタイル", "カフェ", "旅",
    ],
}


BEAUTY_SUBCATEGORY_HINTS: Dict[BeautySubCategory, List[str]] = {
    BeautySubCategory.SKINCARE: [
        "skincare", "skin", "cream", "serum", "lotion", "toner", "mask",
        "facewash", "cleansing", "美容液", "スキンケア", "化粧水", "乳液",
        "美容クリーム",
    ],
    BeautySubCategory.HAIRCARE: [
        "haircare", "hair", "shampoo", "conditioner", "treatment", "styling",
        "salon", "ヘア", "ヘアケア", "シャンプー", "トリートメント", "美髪",
    ],
    BeautySubCategory.ORALCARE: [
        "oralcare", "oral", "mouth", "tooth", "teeth", "dental", "whitening",
        "toothpaste", "mouthwash", "オーラル", "オーラルケア", "歯磨き",
        "ホワイトニング", "歯科",
    ],
}


MODEL_CATEGORY_KEYWORDS: Dict[VideoCategory, List[str]] = {
    VideoCategory.BEAUTY: [
        "cosmetics", "makeup", "lipstick", "face", "skin", "beauty",
        "foundation", "mascara", "eyeshadow", "perfume", "nail", "polish",
        "serum", "cream", "tooth", "dental", "oral", "whitening", "shampoo",
        "conditioner",
    ],
    VideoCategory.FITNESS: [
        "gym", "exercise", "workout", "sport", "fitness", "muscle", "running",
        "yoga", "dumbbell", "bicycle", "athletic", "training",
    ],
    VideoCategory.HAIRCARE: [
        "hair", "salon", "hairstyle", "barber", "shampoo", "conditioner",
        "haircut", "hairdresser", "wig", "brush", "comb",
    ],
    VideoCategory.BUSINESS: [
        "office", "business", "suit", "computer", "laptop", "desk", "meeting",
        "conference", "presentation", "document", "corporate", "professional",
    ],
    VideoCategory.LIFESTYLE: [
        "home", "living", "kitchen", "bedroom", "furniture", "decoration",
        "plant", "coffee", "food", "travel", "leisure", "relaxation",
    ],
}
