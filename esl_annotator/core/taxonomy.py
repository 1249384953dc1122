"""ESL error taxonomy the classification service is restricted to."""
from __future__ import annotations

import json
from dataclasses import asdict, dataclass


@dataclass(frozen=True, slots=True)
class TaxonomyItem:
    macro_code: str
    error_code: str
    explanation: str


TAXONOMY: tuple[TaxonomyItem, ...] = (
    TaxonomyItem("AG", "AG", "A general agreement error where two or more grammatical elements do not match in number, person, or form."),
    TaxonomyItem("AG", "AGA", "A pronoun does not agree with its antecedent in number, person, or gender."),
    TaxonomyItem("AG", "AGD", "A determiner does not agree with the noun it modifies in number or countability."),
    TaxonomyItem("AG", "AGN", "A noun does not agree with another grammatical element that requires number agreement."),
    TaxonomyItem("AG", "AGQ", "A quantifier does not agree with the noun it modifies in terms of countability or number."),
    TaxonomyItem("AG", "AGV", "A verb does not agree with its subject in number or person."),
    TaxonomyItem("AS", "AS", "An error in the complementation pattern of a verb, where the chosen verb requires a different argument structure."),
    TaxonomyItem("CD", "CD", "A determiner is used with a noun whose countability does not allow that determiner."),
    TaxonomyItem("O", "CE", "A noun is incorrectly treated as countable or uncountable."),
    TaxonomyItem("O", "CL", "An incorrect or unnatural collocation is used."),
    TaxonomyItem("CD", "CN", "A noun is treated as countable or uncountable in a way that is not permitted in the intended sense."),
    TaxonomyItem("CD", "CQ", "A quantifier is used that is incompatible with the countability of the noun."),
    TaxonomyItem("DA", "DA", "An incorrect derived pronoun form is used."),
    TaxonomyItem("DA", "DC", "An incorrect derived conjunction form is used."),
    TaxonomyItem("DA", "DD", "An incorrect derived determiner form is used."),
    TaxonomyItem("DA", "DI", "An incorrect inflected form of a determiner is used, where the determiner itself is appropriate but its morphological form is wrong."),
    TaxonomyItem("DA", "DJ", "An incorrect derived adjective form is used."),
    TaxonomyItem("DA", "DN", "An incorrect derived noun form is used."),
    TaxonomyItem("DA", "DQ", "An incorrect derived quantifier form is used."),
    TaxonomyItem("DA", "DT", "An incorrect derived preposition form is used."),
    TaxonomyItem("DA", "DV", "An incorrect derived verb form is used."),
    TaxonomyItem("DA", "DY", "An incorrect derived adverb form is used."),
    TaxonomyItem("F", "FA", "An incorrect pronoun form is used."),
    TaxonomyItem("F", "FD", "An incorrect determiner form is used."),
    TaxonomyItem("F", "FJ", "An incorrect adjective form is used."),
    TaxonomyItem("F", "FN", "An incorrect noun form is used."),
    TaxonomyItem("F", "FQ", "An incorrect quantifier form is used."),
    TaxonomyItem("F", "FV", "An incorrect verb form is used, such as using an infinitive where a gerund or participle is required."),
    TaxonomyItem("F", "FY", "An incorrect adverb form is used."),
    TaxonomyItem("I", "IA", "An incorrect inflected pronoun form is used."),
    TaxonomyItem("I", "ID", "An idiomatic expression is used incorrectly or unnaturally."),
    TaxonomyItem("I", "IJ", "An incorrect inflected adjective form is used."),
    TaxonomyItem("I", "IN", "An incorrect inflected noun form is used."),
    TaxonomyItem("I", "IQ", "An incorrect inflected quantifier form is used."),
    TaxonomyItem("I", "IV", "An incorrect inflected form of a verb is used, such as incorrect tense marking or agreement morphology."),
    TaxonomyItem("I", "IY", "An incorrect inflected adverb form is used."),
    TaxonomyItem("L", "L", "The register or level of formality is inappropriate for the context."),
    TaxonomyItem("M", "M", "A required grammatical element is missing."),
    TaxonomyItem("M", "MA", "A required pronoun is missing."),
    TaxonomyItem("M", "MC", "A required conjunction is missing."),
    TaxonomyItem("M", "MD", "A required determiner is missing."),
    TaxonomyItem("M", "MJ", "A required adjective is missing."),
    TaxonomyItem("M", "MN", "A required noun is missing."),
    TaxonomyItem("M", "MP", "Required punctuation is missing."),
    TaxonomyItem("M", "MQ", "A required quantifier is missing."),
    TaxonomyItem("M", "MT", "A required preposition is missing."),
    TaxonomyItem("M", "MV", "A required verb is missing."),
    TaxonomyItem("M", "MY", "A required adverb is missing."),
    TaxonomyItem("O", "QL", "The response does not appropriately address the question prompt."),
    TaxonomyItem("R", "R", "A word or phrase is present but is not the appropriate choice in the given context and needs to be replaced."),
    TaxonomyItem("R", "RA", "A pronoun is incorrectly used and should be replaced."),
    TaxonomyItem("R", "RC", "A conjunction is incorrectly used and should be replaced."),
    TaxonomyItem("R", "RD", "A determiner is incorrectly used and should be replaced."),
    TaxonomyItem("R", "RJ", "An adjective is incorrectly used and should be replaced."),
    TaxonomyItem("R", "RN", "A noun is incorrectly used and should be replaced."),
    TaxonomyItem("R", "RP", "Punctuation is incorrectly used and should be replaced."),
    TaxonomyItem("R", "RQ", "A quantifier is incorrectly used and should be replaced."),
    TaxonomyItem("R", "RT", "A preposition is incorrectly used and should be replaced."),
    TaxonomyItem("R", "RV", "A verb is used that is grammatically possible but inappropriate in meaning, collocation, or argument structure for the context."),
    TaxonomyItem("R", "RY", "An adverb is incorrectly used and should be replaced."),
    TaxonomyItem("S", "S", "A non-existent word is produced due to incorrect spelling."),
    TaxonomyItem("S", "SA", "A spelling variant that follows American conventions rather than British conventions."),
    TaxonomyItem("S", "SX", "A real English word is used, but it is not the intended word."),
    TaxonomyItem("T", "TV", "Incorrect tense is used to express time reference."),
    TaxonomyItem("U", "U", "A grammatical element is used unnecessarily."),
    TaxonomyItem("U", "UA", "A pronoun is used unnecessarily."),
    TaxonomyItem("U", "UC", "A conjunction is used unnecessarily."),
    TaxonomyItem("U", "UD", "A determiner is used unnecessarily."),
    TaxonomyItem("U", "UJ", "An adjective is used unnecessarily."),
    TaxonomyItem("U", "UN", "A noun is used unnecessarily."),
    TaxonomyItem("U", "UP", "Punctuation is used unnecessarily."),
    TaxonomyItem("U", "UQ", "A quantifier is used unnecessarily."),
    TaxonomyItem("U", "UT", "A preposition is used unnecessarily."),
    TaxonomyItem("U", "UV", "A verb is used unnecessarily."),
    TaxonomyItem("U", "UY", "An adverb is used unnecessarily."),
    TaxonomyItem("X", "W", "Words are arranged in an incorrect order."),
    TaxonomyItem("X", "X", "Negation is expressed incorrectly."),
)


def taxonomy_json() -> str:
    return json.dumps([asdict(item) for item in TAXONOMY], ensure_ascii=False)


__all__ = ["TAXONOMY", "TaxonomyItem", "taxonomy_json"]
