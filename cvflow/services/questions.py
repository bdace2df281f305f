# Question catalogs for the two self-service forms. The keys are the answer
# keys the forms submit; the admin correction screen uses the same ids.

RECRUITMENT_QUESTIONS = [
    ("presentezVous", "1. Présentez-vous ?"),
    ("apporteEtudes", "2. Que vous ont apporté vos études ?"),
    ("tempsRechercheEmploi", "3. Depuis combien de temps cherchez-vous un emploi ?"),
    ("qualitesDefauts", "4. Quelles sont vos qualités ? Quels sont vos défauts ?"),
    ("seulOuEquipe", "5. Préférez-vous travailler seul ou en équipe ? Pourquoi ?"),
    ("professionParents", "6. Quelle est la profession de vos parents ?"),
    ("pretentionsSalariales", "7. Quelles sont vos prétentions salariales ?"),
    ("lastExperience", "8. Tasks and responsibilities of last internship/job:"),
]

_EVALUATION_TEXTS = [
    "Rôle principal d'un chargé d'étude ?",
    "Erreurs critiques à éviter ?",
    "Comparaison fiche technique / offre fournisseur ?",
    "Inclusion des accessoires ?",
    "Vérifications avant envoi ?",
    "Exemple de non-conformité ?",
    "Risque WhatsApp ?",
    "Frais supplémentaires ?",
    "Conformité normes (ATEX, UL, etc.) ?",
    "Demande incomplète ?",
    "Doute technique ?",
    "Première info à identifier ?",
    "Étape après l'origine ?",
    "Cas UK/UK/ATIS ?",
    "Cas UK/UE/ATIS ?",
    "Cas UK/UE/Eurodistech ?",
    "Cas USA/UE ?",
    "Fournisseur différent du pays d'origine ?",
    "Prévenir RH ?",
    "Horaires officiels ?",
    "Absence urgente ?",
    "Certificat médical refusé ?",
    "Conséquences retard ?",
    "Absence non justifiée ?",
    "Compréhension règles RH ?",
    "Points flous internes ?",
    "Plan anti-malentendu ?",
    "Erreur collègue ?",
    "Tâche secondaire ?",
    "Désaccord chef ?",
    "Perturbation concentration ?",
    "Respect Open Space ?",
    "Difficulté 2 premières semaines ?",
    "Compétences renforcées ?",
    "Produits/Demandes complexes ?",
    "Bonnes pratiques ?",
    "Conseil futur recrue ?",
    "Points d'amélioration ?",
]

EVALUATION_QUESTIONS = [
    (f"q{i}", f"{i}. {text}") for i, text in enumerate(_EVALUATION_TEXTS, start=1)
]
EVALUATION_QUESTION_IDS = [qid for qid, _ in EVALUATION_QUESTIONS]
