"""Expected layouts of common project types.

Each preset lists paths relative to the project root with the kind of node
expected there. Names may use the ``*`` wildcard.
"""

from __future__ import annotations

from enum import StrEnum

from zip_standardizer.models.template import NodeKind

FILE = NodeKind.FILE
DIRECTORY = NodeKind.DIRECTORY


class PresetKey(StrEnum):
    REACT = "react"
    ANGULAR = "angular"
    VUE = "vue"
    DOTNET = "dotnet"
    MAVEN = "maven"
    GRADLE = "gradle"
    FLUTTER = "flutter"
    ANDROID = "android"
    LARAVEL = "laravel"
    DJANGO = "django"
    RAILS = "rails"
    SPRINGBOOT = "springboot"


PRESET_LAYOUTS: dict[PresetKey, list[tuple[str, NodeKind]]] = {
    PresetKey.REACT: [
        ("src", DIRECTORY),
        ("src/App.*sx", FILE),
        ("src/main.*sx", FILE),
        ("public", DIRECTORY),
        ("package.json", FILE),
        ("tsconfig.json", FILE),
    ],
    PresetKey.ANGULAR: [
        ("src", DIRECTORY),
        ("src/app", DIRECTORY),
        ("src/app/app.component.ts", FILE),
        ("src/app/app.module.ts", FILE),
        ("angular.json", FILE),
        ("package.json", FILE),
        ("tsconfig.json", FILE),
    ],
    PresetKey.VUE: [
        ("src", DIRECTORY),
        ("src/App.vue", FILE),
        ("src/main.*s", FILE),
        ("index.html", FILE),
        ("package.json", FILE),
        ("tsconfig.json", FILE),
        ("vite.config.ts", FILE),
    ],
    PresetKey.DOTNET: [
        ("*.sln", FILE),
        ("*", DIRECTORY),
        ("*/*.csproj", FILE),
        ("*/Program.cs", FILE),
    ],
    PresetKey.MAVEN: [
        ("pom.xml", FILE),
        ("src/main/java", DIRECTORY),
        ("src/main/resources", DIRECTORY),
        ("src/test/java", DIRECTORY),
        ("src/test/resources", DIRECTORY),
    ],
    PresetKey.GRADLE: [
        ("settings.gradle*", FILE),
        ("build.gradle*", FILE),
        ("gradle.properties", FILE),
        ("src/main/java", DIRECTORY),
        ("src/main/resources", DIRECTORY),
        ("src/test/java", DIRECTORY),
        ("src/test/resources", DIRECTORY),
    ],
    PresetKey.FLUTTER: [
        ("pubspec.yaml", FILE),
        ("lib", DIRECTORY),
    ],
    PresetKey.ANDROID: [
        ("settings.gradle*", FILE),
        ("build.gradle*", FILE),
        ("gradle.properties", FILE),
        ("gradle/wrapper/gradle-wrapper.properties", FILE),
        ("app/build.gradle*", FILE),
        ("app/src/main/java", DIRECTORY),
        ("app/src/main/res", DIRECTORY),
        ("app/src/main/AndroidManifest.xml", FILE),
    ],
    PresetKey.LARAVEL: [
        ("app", DIRECTORY),
        ("bootstrap", DIRECTORY),
        ("config", DIRECTORY),
        ("public", DIRECTORY),
        ("resources/views", DIRECTORY),
        ("routes/web.php", FILE),
        ("storage", DIRECTORY),
        ("composer.json", FILE),
        ("artisan", FILE),
    ],
    PresetKey.DJANGO: [
        ("manage.py", FILE),
        ("requirements.txt", FILE),
        ("templates", DIRECTORY),
        ("static", DIRECTORY),
    ],
    PresetKey.RAILS: [
        ("app", DIRECTORY),
        ("Gemfile", FILE),
        ("Rakefile", FILE),
        ("config.ru", FILE),
    ],
    PresetKey.SPRINGBOOT: [
        ("pom.xml", FILE),
        ("src/main/java", DIRECTORY),
        ("src/main/resources/application.properties", FILE),
    ],
}
