# tests/test_resolver.py
import unittest

from scenegraph.core.components import Camera, MeshRenderer, Rigidbody
from scenegraph.core.scene import Scene
from scenegraph.storage.file_system import LocalFileSystem
from scenepilot.core.errors import ResolutionError
from scenepilot.core.resolver import ObjectResolver


class TestObjectResolver(unittest.TestCase):

    def setUp(self):
        self.scene = Scene("Main", path="Assets/Scenes/Main.yaml")
        self.player = self.scene.create_entity("Player")
        self.player.add_component(Rigidbody)
        self.arm = self.scene.create_entity("Arm", parent=self.player)
        self.hand = self.scene.create_entity("Hand", parent=self.arm)
        self.hand.add_component(MeshRenderer)
        self.resolver = ObjectResolver(self.scene, LocalFileSystem("."), aliases={"Cam": "UnityEngine.Camera"})

    def test_full_type_name_uses_aliases(self):
        self.assertEqual(self.resolver.full_type_name("Rigidbody"), "UnityEngine.Rigidbody")
        self.assertEqual(self.resolver.full_type_name("Text"), "UnityEngine.UI.Text")
        self.assertEqual(self.resolver.full_type_name("Cam"), "UnityEngine.Camera")
        self.assertEqual(self.resolver.full_type_name("PlayerController"), "PlayerController")

    def test_resolve_component_type(self):
        self.assertIs(self.resolver.resolve_component_type("Cam"), Camera)
        with self.assertRaises(ResolutionError) as ctx:
            self.resolver.resolve_component_type("Jetpack")
        self.assertEqual(str(ctx.exception), "Component type not found: Jetpack")

    def test_find_entity_by_name_and_relative_path(self):
        self.assertIs(self.resolver.find_entity("Hand"), self.hand)
        self.assertIs(self.resolver.find_entity("Arm/Hand"), self.hand)
        self.assertIs(self.resolver.find_entity("Player/Arm/Hand"), self.hand)
        self.assertIsNone(self.resolver.find_entity("Leg"))

    def test_resolve_entity_missing(self):
        with self.assertRaises(ResolutionError) as ctx:
            self.resolver.resolve_entity("Enemy")
        self.assertEqual(str(ctx.exception), "GameObject not found: Enemy")

    def test_resolve_entity_creates_when_asked(self):
        entity, created = self.resolver.resolve_entity("Enemy", create=True)
        self.assertTrue(created)
        self.assertIn(entity, self.scene.roots)
        again, created_again = self.resolver.resolve_entity("Enemy", create=True)
        self.assertIs(again, entity)
        self.assertFalse(created_again)

    def test_component_is_searched_depth_first_in_children(self):
        entity, component = self.resolver.resolve_scene_target("Player", "MeshRenderer")
        self.assertIs(entity, self.player)
        self.assertIs(component.entity, self.hand)

    def test_material_alias_targets_first_mesh_renderer(self):
        _, component = self.resolver.resolve_scene_target("Player", "Material")
        self.assertIsInstance(component, MeshRenderer)

    def test_material_alias_without_renderer(self):
        self.scene.create_entity("Empty")
        with self.assertRaises(ResolutionError) as ctx:
            self.resolver.resolve_scene_target("Empty", "Material")
        self.assertEqual(str(ctx.exception), "MeshRenderer not found on Empty or its children")

    def test_component_missing(self):
        with self.assertRaises(ResolutionError) as ctx:
            self.resolver.resolve_scene_target("Player", "Camera")
        self.assertEqual(str(ctx.exception), "Component not found: Camera on Player or its children")


if __name__ == "__main__":
    unittest.main()
