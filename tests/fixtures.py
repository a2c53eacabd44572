"""テスト共通の問題データ"""

import copy


def mc_question(**overrides):
    q = {
        "id": "q_mc0001",
        "sourceNote": "School/Datacenters/Hardware Components.md",
        "createdAt": "2025-01-15T11:00:00Z",
        "type": "multiple_choice",
        "difficulty": "medium",
        "question": "What is the primary advantage of SSDs over HDDs?",
        "correctAnswer": "Lower latency",
        "incorrectAnswers": ["Lower cost", "Higher capacity", "Heat tolerance"],
        "explanation": "Flash memory has no moving parts.",
        "relatedConcepts": ["storage", "IOPS"],
    }
    q.update(overrides)
    return q


def fb_question(**overrides):
    q = {
        "id": "q_fb0001",
        "sourceNote": "School/Algorithms/Graph Traversal.md",
        "type": "fill_blank",
        "difficulty": "easy",
        "question": "BFS uses a ___ while DFS uses a ___.",
        "blanks": ["queue", "stack"],
        "explanation": "FIFO vs LIFO.",
    }
    q.update(overrides)
    return q


def tf_question(**overrides):
    q = {
        "id": "q_tf0001",
        "sourceNote": "School/Datacenters/Hardware Components.md",
        "type": "true_false",
        "difficulty": "hard",
        "question": "L1 cache is slower but larger than L2 cache.",
        "correctAnswer": False,
        "explanation": "L1 is the fastest and smallest.",
    }
    q.update(overrides)
    return q


def batch(*questions):
    return {"questions": [copy.deepcopy(q) for q in questions]}
