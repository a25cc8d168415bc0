import math
import random
from typing import Optional

from core.math import Vec3
from core.material import (CheckerTexture, FlatMaterial, ImageTexture, PhongMaterial,
                           ReflectiveMaterial, TexturedMaterial, TransparentMaterial)
from core.geometry import Plane, Sphere, Triangle
from core.light import AmbientLight, ConeLight, DirectionalLight, PointLight
from core.mesh import box, quad, uv_sphere
from core.transform import Transform
from core.scene import Scene
from core.camera import Camera


class CustomSceneBuilder:
    """Cornell-style box with textured cubes, a mirror, glass and a mesh sphere."""

    def __init__(self, canvas_texture: Optional[str] = None):
        # dimensions in centimetres
        self.box_size = 30.0
        self.cube_size = 5.6
        self.canvas_width = 27.5
        self.canvas_height = 22.0
        self.canvas_angle = 112.0
        self.canvas_texture = canvas_texture

    def build_scene(self, width: int, height: int) -> Scene:
        objects = []
        materials = self._create_materials()

        self._create_walls(objects, materials)
        self._create_cubes(objects, materials)
        self._create_spheres(objects, materials)
        self._create_canvas(objects, materials)
        lights = self._create_lighting()

        return Scene(objects, lights, self.create_camera(width, height),
                     background=Vec3(0.05, 0.05, 0.1))

    def create_camera(self, width: int, height: int) -> Camera:
        # 50cm in front of the box centre, looking straight in
        lookfrom = Vec3(0, 0, 50.0)
        lookat = Vec3(0, 0, 0)
        vup = Vec3(0, 1, 0)
        return Camera(lookfrom, lookat, vup, 49.5, width, height)

    def _create_materials(self) -> dict:
        if self.canvas_texture:
            canvas = ImageTexture(self.canvas_texture)
        else:
            canvas = CheckerTexture(Vec3(0.9, 0.8, 0.6), Vec3(0.3, 0.2, 0.1), checks=10)
        return {
            'floor': PhongMaterial(color=Vec3(0.9, 0.9, 0.9), diffuse=0.8, specular=0.1),
            'back': FlatMaterial(color=Vec3(0.9, 0.9, 0.9)),
            'left': FlatMaterial(color=Vec3(255 / 255, 105 / 255, 180 / 255)),
            'right': FlatMaterial(color=Vec3(52 / 255, 157 / 255, 204 / 255)),
            'ceiling': FlatMaterial(color=Vec3(0.9, 0.9, 0.9)),
            'cube': PhongMaterial(color=Vec3(0.8, 0.1, 0.1), diffuse=0.7, specular=0.4),
            'canvas': TexturedMaterial(canvas, diffuse=0.9, specular=0.1),
            'mirror': ReflectiveMaterial(color=Vec3(0.9, 0.9, 0.9), reflectivity=0.85,
                                         diffuse=0.05, specular=0.9),
            'glass': TransparentMaterial(color=Vec3(0.95, 0.95, 0.95), ior=1.5,
                                         transparency=0.8, reflectivity=0.1,
                                         diffuse=0.1, specular=0.9),
            'mesh': PhongMaterial(color=Vec3(0.2, 0.7, 0.3), diffuse=0.8, specular=0.5, shininess=64),
        }

    def _create_walls(self, objects: list, materials: dict):
        half_size = self.box_size / 2.0
        objects.append(Plane(Vec3(0, -half_size, 0), Vec3(0, 1, 0), materials['floor']))
        objects.append(Plane(Vec3(0, 0, -half_size), Vec3(0, 0, 1), materials['back']))
        objects.append(Plane(Vec3(-half_size, 0, 0), Vec3(1, 0, 0), materials['left']))
        objects.append(Plane(Vec3(half_size, 0, 0), Vec3(-1, 0, 0), materials['right']))
        objects.append(Plane(Vec3(0, half_size, 0), Vec3(0, -1, 0), materials['ceiling']))

    def _create_cubes(self, objects: list, materials: dict):
        """Two stacked cubes on the floor, the lower one turned 225 degrees."""
        half = self.cube_size / 2.0
        floor_y = -self.box_size / 2.0
        local_min = Vec3(-half, -half, -half)
        local_max = Vec3(half, half, half)
        for level, rotation_y in ((0, 225.0), (1, 0.0)):
            center = Vec3(0, floor_y + half + level * self.cube_size, 0)
            placement = Transform.translation(center) @ Transform.rotation(1, rotation_y)
            objects.extend(box(local_min, local_max, materials['cube'], transform=placement))

    def _create_spheres(self, objects: list, materials: dict):
        floor_y = -self.box_size / 2.0
        radius = 3.0
        objects.append(Sphere(Vec3(self.box_size / 4, floor_y + radius, self.box_size / 4),
                              radius, materials['glass']))
        objects.append(Sphere(Vec3(-self.box_size / 4, floor_y + radius, self.box_size / 4),
                              radius, materials['mirror']))

        # glass ball resting on top of the cube stack
        stack_top = floor_y + 2 * self.cube_size
        objects.append(Sphere(Vec3(0, stack_top + radius, 0), radius, materials['glass']))

        # tessellated sphere in the back-right corner
        objects.extend(uv_sphere(Vec3(self.box_size / 3, floor_y + 4.0, -self.box_size / 4),
                                 4.0, materials['mesh'], rings=10, segments=20))

    def _create_canvas(self, objects: list, materials: dict):
        """Textured canvas leaning against the back wall."""
        back_wall_z = -self.box_size / 2.0
        bottom_y = -self.box_size / 2.0 + 0.5
        angle = math.radians(self.canvas_angle)

        half_width = self.canvas_width / 2.0
        bottom_z = back_wall_z + 1.0
        top_z = bottom_z + self.canvas_height * max(math.cos(angle), 0.0) + 0.5
        top_y = bottom_y + self.canvas_height * math.sin(angle)

        objects.extend(quad(
            Vec3(-half_width, bottom_y, bottom_z),
            Vec3(half_width, bottom_y, bottom_z),
            Vec3(half_width, top_y, top_z),
            Vec3(-half_width, top_y, top_z),
            materials['canvas'],
        ))

    def _create_lighting(self) -> list:
        ceiling_y = self.box_size / 2.0
        return [
            AmbientLight(Vec3(0.15, 0.15, 0.15)),
            PointLight(Vec3(0, ceiling_y - 1.0, 5.0), intensity=Vec3(1.0, 1.0, 1.0),
                       attenuation=(1.0, 0.0, 0.001)),
            ConeLight(Vec3(-10.0, ceiling_y - 1.0, 10.0), Vec3(1.0, -2.0, -1.0),
                      intensity=Vec3(0.6, 0.55, 0.4), angle=25.0, softness=8.0),
        ]


class RandomSpheresSceneBuilder:
    """Seeded field of small spheres on a floor, lit by the sun and a point light."""

    def __init__(self, num_spheres: int = 30, seed: int = 248):
        self.num_spheres = num_spheres
        self.seed = seed

    def build_scene(self, width: int, height: int) -> Scene:
        rng = random.Random(self.seed)
        objects = [
            Plane(Vec3(0, 0, 0), Vec3(0, 1, 0),
                  ReflectiveMaterial(reflectivity=0.25,
                                     texture=CheckerTexture(Vec3(0.8, 0.8, 0.8), Vec3(0.2, 0.2, 0.2), checks=2)),
                  uv_scale=2.0),
            Triangle(Vec3(-10, -10, -3), Vec3(10, -10, -3), Vec3(10, 10, -3),
                     FlatMaterial(Vec3(0.8, 0.8, 0.8))),
            Triangle(Vec3(-10, -10, -3), Vec3(10, 10, -3), Vec3(-10, 10, -3),
                     FlatMaterial(Vec3(0.8, 0.8, 0.8))),
        ]
        for _ in range(self.num_spheres):
            color = Vec3(rng.uniform(0.2, 1.0), rng.uniform(0.2, 1.0), rng.uniform(0.2, 1.0))
            center = Vec3(rng.uniform(-2.5, 2.5), rng.uniform(0.0, 2.0), rng.uniform(-3.0, 3.0))
            radius = rng.uniform(0.05, 0.2)
            kind = rng.random()
            if kind < 0.15:
                material = ReflectiveMaterial(color, reflectivity=0.7)
            elif kind < 0.3:
                material = TransparentMaterial(color, ior=1.3, transparency=0.8)
            else:
                material = PhongMaterial(color, diffuse=1.0, specular=0.3)
            objects.append(Sphere(center, radius, material))

        lights = [
            AmbientLight(0.1),
            DirectionalLight(Vec3(-1.0, -2.0, -1.0), intensity=0.6),
            PointLight(Vec3(1.0, 2.0, 2.5), intensity=0.8),
        ]
        camera = Camera(Vec3(0.0, 1.5, 5.0), Vec3(0.0, 0.0, 0.0), Vec3(0, 1, 0), 60.0, width, height)
        return Scene(objects, lights, camera, background=Vec3(0.2, 0.2, 0.2))


SCENE_BUILDERS = {
    'custom': CustomSceneBuilder,
    'random_spheres': RandomSpheresSceneBuilder,
}
